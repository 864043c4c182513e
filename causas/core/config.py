from __future__ import annotations

import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///causas.db",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY", "")
    MAIL_FROM = os.getenv("MAIL_FROM", "")

    # Re-runs of a transaction aborted by a storage conflict
    TRANSACTION_MAX_ATTEMPTS = int(os.getenv("TRANSACTION_MAX_ATTEMPTS", "5"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
