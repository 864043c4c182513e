from __future__ import annotations

import logging

from werkzeug.security import generate_password_hash

from causas.core.errors import AlreadyExists, InvalidArgument, NotFound
from causas.core.extensions import db
from causas.core.models import Especialidad, User, UserRole
from causas.core.transactions import run_in_transaction

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _validate_email(value: object) -> str:
    email = str(value or "").strip().lower()
    if not email or "@" not in email:
        raise InvalidArgument("Email inválido.")
    return email


def _validate_password(value: object) -> str:
    password = str(value or "")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidArgument(f"Password mínimo {MIN_PASSWORD_LENGTH} caracteres.")
    return password


def _parse_role(value: object) -> UserRole:
    raw = str(value or "lawyer").strip().lower()
    try:
        return UserRole(raw)
    except ValueError as exc:
        raise InvalidArgument(f"Rol invalido: {raw}.") from exc


def _specialties_by_ids(values: object) -> list[Especialidad]:
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        raise InvalidArgument("specialties debe ser una lista.")
    ids: list[int] = []
    for value in values:
        raw = str(value).strip()
        if not raw.isdigit():
            raise InvalidArgument(f"Especialidad invalida: {raw}.")
        if int(raw) not in ids:
            ids.append(int(raw))
    if not ids:
        return []
    found = Especialidad.query.filter(Especialidad.id.in_(ids)).all()
    if len(found) != len(ids):
        missing = sorted(set(ids) - {s.id for s in found})
        raise InvalidArgument(f"Especialidad inexistente: {missing[0]}.")
    return sorted(found, key=lambda s: s.id)


def lawyer_by_id(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("Abogado no encontrado.")
    return user


def serialize_lawyer(user: User) -> dict[str, object]:
    return {
        "uid": user.id,
        "email": user.email,
        "role": user.role.value,
        "isPracticing": user.is_practicing,
        "isActive": user.is_active,
        "specialties": user.specialty_ids,
    }


def create_lawyer(payload: dict) -> User:
    email = _validate_email(payload.get("email"))
    password = _validate_password(payload.get("password"))
    role = _parse_role(payload.get("role"))
    is_practicing = payload.get("isPracticing") is not False

    def work() -> User:
        if User.query.filter_by(email=email).first():
            raise AlreadyExists("Ya existe un usuario con ese email.")
        user = User(
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            is_practicing=is_practicing,
        )
        user.specialties = _specialties_by_ids(payload.get("specialties"))
        db.session.add(user)
        db.session.flush()
        return user

    user = run_in_transaction(work)
    logger.info("lawyer %s created (%s)", user.id, user.email)
    return user


def update_lawyer_profile(user_id: int, payload: dict) -> User:
    def work() -> User:
        user = lawyer_by_id(user_id)
        if "specialties" in payload:
            user.specialties = _specialties_by_ids(payload.get("specialties"))
        if "isPracticing" in payload:
            user.is_practicing = bool(payload.get("isPracticing"))
        return user

    return run_in_transaction(work)


def set_lawyer_password(user_id: int, payload: dict) -> User:
    password = _validate_password(payload.get("password"))

    def work() -> User:
        user = lawyer_by_id(user_id)
        user.password_hash = generate_password_hash(password)
        return user

    return run_in_transaction(work)


def deactivate_lawyer(user_id: int) -> User:
    # Cases and invitations keep pointing at the account, so it is disabled
    # instead of removed.
    def work() -> User:
        user = lawyer_by_id(user_id)
        user.is_active = False
        user.is_practicing = False
        user.specialties = []
        return user

    user = run_in_transaction(work)
    logger.info("lawyer %s deactivated", user.id)
    return user


def list_lawyers() -> list[User]:
    return User.query.order_by(User.email.asc()).all()


def list_practicing_lawyers() -> list[User]:
    return (
        User.query.filter(User.is_practicing.is_(True), User.is_active.is_(True))
        .order_by(User.email.asc())
        .all()
    )


def serialize_specialty(specialty: Especialidad) -> dict[str, object]:
    return {"id": specialty.id, "name": specialty.name, "active": specialty.active}


def list_specialties(include_inactive: bool = False) -> list[Especialidad]:
    query = Especialidad.query
    if not include_inactive:
        query = query.filter(Especialidad.active.is_(True))
    return query.order_by(Especialidad.name.asc()).all()


def create_specialty(payload: dict) -> Especialidad:
    name = str(payload.get("name") or "").strip()
    if not name:
        raise InvalidArgument("Falta nombre de especialidad.")

    def work() -> Especialidad:
        if Especialidad.query.filter(db.func.lower(Especialidad.name) == name.lower()).first():
            raise AlreadyExists("Ya existe esa especialidad.")
        specialty = Especialidad(name=name, active=True)
        db.session.add(specialty)
        db.session.flush()
        return specialty

    return run_in_transaction(work)


def set_specialty_active(specialty_id: int, payload: dict) -> Especialidad:
    if "active" not in payload:
        raise InvalidArgument("Falta active.")

    def work() -> Especialidad:
        specialty = db.session.get(Especialidad, specialty_id)
        if specialty is None:
            raise NotFound("Especialidad no encontrada.")
        specialty.active = bool(payload.get("active"))
        return specialty

    return run_in_transaction(work)


def create_admin(email: str, password: str) -> User:
    return create_lawyer({"email": email, "password": password, "role": "admin", "isPracticing": False})
