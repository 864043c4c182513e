from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from flask import Flask, current_app

from causas.core.extensions import db
from causas.core.models import Causa, InviteStatus, User

logger = logging.getLogger(__name__)

MAILER_EXTENSION_KEY = "causas.mailer"
NOT_CONFIGURED_ERROR = "SendGrid no configurado (faltan secrets)."

DECISION_LABELS = {
    InviteStatus.ACCEPTED: "ACEPTADA",
    InviteStatus.REJECTED: "RECHAZADA",
}


@dataclass
class NotificationResult:
    sent: bool = False
    error: str | None = None


class Mailer(Protocol):
    def is_configured(self) -> bool: ...

    def send(self, to: str, subject: str, body: str) -> None: ...


class SendGridMailer:
    """Plain-text email through the SendGrid API."""

    def __init__(self, api_key: str, from_email: str) -> None:
        self.api_key = api_key
        self.from_email = from_email
        self._client = None

    @classmethod
    def from_config(cls, config) -> "SendGridMailer":
        return cls(config.get("SENDGRID_API_KEY", ""), config.get("MAIL_FROM", ""))

    def is_configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    def _get_client(self):
        if self._client is None:
            from sendgrid import SendGridAPIClient

            self._client = SendGridAPIClient(api_key=self.api_key)
        return self._client

    def send(self, to: str, subject: str, body: str) -> None:
        from sendgrid.helpers.mail import Mail

        message = Mail(
            from_email=self.from_email,
            to_emails=to,
            subject=subject,
            plain_text_content=body,
        )
        response = self._get_client().send(message)
        if response.status_code not in (200, 201, 202):
            raise RuntimeError(f"SendGrid returned status {response.status_code}")


def init_mailer(app: Flask, mailer: Mailer | None = None) -> None:
    app.extensions[MAILER_EXTENSION_KEY] = mailer or SendGridMailer.from_config(app.config)


def get_mailer() -> Mailer:
    return current_app.extensions[MAILER_EXTENSION_KEY]


def decision_email(causa_id: int, caratula: str, decision: InviteStatus) -> tuple[str, str]:
    label = DECISION_LABELS[decision]
    subject = f"Invitación {label} — {caratula}"
    body = (
        "Novedad sobre la causa:\n\n"
        f"Carátula: {caratula}\n"
        f"Decisión del invitado: {label}\n"
        f"CaseId: {causa_id}\n"
    )
    return subject, body


def notify_invite_decision(causa_id: int, decision: InviteStatus) -> NotificationResult:
    """Tell the case creator about an invitation response. Never raises."""
    result = NotificationResult()
    try:
        causa = db.session.get(Causa, causa_id)
        caratula = causa.caratula_tentativa if causa else str(causa_id)
        creator = db.session.get(User, causa.brought_by_user_id) if causa else None
        creator_email = creator.email if creator else ""
        if not creator_email:
            return result

        mailer = get_mailer()
        if not mailer.is_configured():
            result.error = NOT_CONFIGURED_ERROR
            return result

        subject, body = decision_email(causa_id, caratula, decision)
        mailer.send(creator_email, subject, body)
        result.sent = True
    except Exception as exc:  # best-effort: report, never propagate
        logger.exception("decision email for case %s failed", causa_id)
        result.error = str(exc) or exc.__class__.__name__
    return result
