from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_user, logout_user
from werkzeug.security import check_password_hash

from causas.core.errors import Unauthenticated
from causas.core.models import User
from causas.core.permissions import require_login

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _credentials() -> tuple[str, str]:
    payload = request.get_json(silent=True) or request.form
    email = str(payload.get("email", "") or "").strip().lower()
    password = str(payload.get("password", "") or "")
    return email, password


@auth_bp.post("/login")
def login_post():
    email, password = _credentials()
    user = User.query.filter_by(email=email).first()
    if not user or not user.is_active or not check_password_hash(user.password_hash, password):
        logger.info("failed login for %s", email or "<empty>")
        raise Unauthenticated("Credenciales invalidas.")
    login_user(user)
    return jsonify({"ok": True, "uid": user.id, "role": user.role.value})


@auth_bp.post("/logout")
@require_login
def logout():
    logout_user()
    return jsonify({"ok": True})


@auth_bp.get("/me")
@require_login
def me():
    return jsonify(
        {
            "uid": current_user.id,
            "email": current_user.email,
            "role": current_user.role.value,
            "isPracticing": current_user.is_practicing,
            "specialties": current_user.specialty_ids,
        }
    )
