from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select

from causas.assignment.notifications import NotificationResult, notify_invite_decision
from causas.assignment.rotation import PoolSelection, advance_rotation, select_from_pool
from causas.core.errors import FailedPrecondition, InvalidArgument, NotFound, PermissionDenied
from causas.core.extensions import db
from causas.core.models import (
    REQUIRED_ASSIGNEES_COUNT,
    AssignmentMode,
    Causa,
    CausaConfirmacion,
    CausaStatus,
    Especialidad,
    InviteStatus,
    Invitacion,
    Jurisdiccion,
    User,
    utcnow,
)
from causas.core.transactions import run_in_transaction

logger = logging.getLogger(__name__)

MIN_JUSTIFICATION_LENGTH = 10


@dataclass
class CaseRequest:
    caratula_tentativa: str
    specialty_id: int
    objeto: str
    resumen: str
    jurisdiccion: Jurisdiccion
    brought_by_participates: bool
    assignment_mode: AssignmentMode
    direct_assignee_ids: list[int] = field(default_factory=list)
    direct_justification: str = ""


@dataclass
class InviteResponse:
    causa_id: int
    invite_id: int
    decision: InviteStatus
    replacement_user_id: int | None = None
    status: CausaStatus = CausaStatus.DRAFT


def _text(payload: dict, key: str) -> str:
    return str(payload.get(key) or "").strip()


def parse_id(value: object, field_name: str) -> int:
    raw = str(value if value is not None else "").strip()
    if not raw:
        raise InvalidArgument(f"Falta {field_name}.")
    if not raw.isdigit():
        raise InvalidArgument(f"{field_name} inválido.")
    return int(raw)


def _parse_jurisdiccion(value: object) -> Jurisdiccion:
    raw = str(value or "").strip().lower()
    if not raw:
        raise InvalidArgument("Falta jurisdicción.")
    try:
        return Jurisdiccion(raw)
    except ValueError as exc:
        raise InvalidArgument(f"Jurisdicción invalida: {raw}.") from exc


def _parse_assignment_mode(value: object) -> AssignmentMode:
    raw = str(value or "auto").strip().lower()
    try:
        return AssignmentMode(raw)
    except ValueError as exc:
        raise InvalidArgument(f"Modo de asignación invalido: {raw}.") from exc


def _parse_decision(value: object) -> InviteStatus:
    raw = str(value or "").strip().lower()
    if raw not in {InviteStatus.ACCEPTED.value, InviteStatus.REJECTED.value}:
        raise InvalidArgument("Decisión inválida.")
    return InviteStatus(raw)


def _unique_ids(values: object) -> list[int]:
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        raise InvalidArgument("directAssigneesUids debe ser una lista.")
    ids: list[int] = []
    for value in values:
        user_id = parse_id(value, "uid de invitado")
        if user_id not in ids:
            ids.append(user_id)
    return ids


def required_direct_count(brought_by_participates: bool) -> int:
    return REQUIRED_ASSIGNEES_COUNT - (1 if brought_by_participates else 0)


def validate_case_request(payload: dict, creator_id: int) -> CaseRequest:
    caratula = _text(payload, "caratulaTentativa")
    raw_specialty = _text(payload, "specialtyId")
    objeto = _text(payload, "objeto")
    resumen = _text(payload, "resumen")

    if not caratula:
        raise InvalidArgument("Falta carátula tentativa.")
    if not raw_specialty:
        raise InvalidArgument("Falta specialtyId.")
    if not objeto:
        raise InvalidArgument("Falta objeto.")
    if not resumen:
        raise InvalidArgument("Falta resumen.")
    jurisdiccion = _parse_jurisdiccion(payload.get("jurisdiccion"))
    specialty_id = parse_id(raw_specialty, "specialtyId")

    participates = bool(payload.get("broughtByParticipates"))
    mode = _parse_assignment_mode(payload.get("assignmentMode"))
    request_data = CaseRequest(
        caratula_tentativa=caratula,
        specialty_id=specialty_id,
        objeto=objeto,
        resumen=resumen,
        jurisdiccion=jurisdiccion,
        brought_by_participates=participates,
        assignment_mode=mode,
    )
    if mode != AssignmentMode.DIRECT:
        return request_data

    justification = _text(payload, "directJustification")
    assignees = _unique_ids(payload.get("directAssigneesUids"))
    expected = required_direct_count(participates)
    if len(assignees) != expected:
        raise InvalidArgument(f"Asignación directa requiere {expected} invitado(s).")
    if len(justification) < MIN_JUSTIFICATION_LENGTH:
        raise InvalidArgument(
            f"Justificación obligatoria (mínimo {MIN_JUSTIFICATION_LENGTH} caracteres)."
        )
    if creator_id in assignees:
        raise InvalidArgument("No podés invitarte a vos mismo.")
    request_data.direct_assignee_ids = assignees
    request_data.direct_justification = justification
    return request_data


def _creator_profile(creator_id: int) -> User:
    creator = db.session.get(User, creator_id)
    if creator is None:
        raise FailedPrecondition("No existe perfil de usuario.")
    return creator


def _direct_invitees(user_ids: list[int]) -> dict[int, str]:
    rows = db.session.execute(select(User.id, User.email).where(User.id.in_(user_ids))).all()
    emails = {row.id: row.email for row in rows}
    missing = [uid for uid in user_ids if uid not in emails]
    if missing:
        raise InvalidArgument(f"Abogado invitado inexistente: {missing[0]}.")
    return emails


def create_case_with_invites(payload: dict, creator_id: int) -> Causa:
    req = validate_case_request(payload, creator_id)

    def work() -> Causa:
        # Reads
        _creator_profile(creator_id)
        if db.session.get(Especialidad, req.specialty_id) is None:
            raise InvalidArgument("Especialidad inexistente.")
        confirmed = [creator_id] if req.brought_by_participates else []
        selection: PoolSelection | None = None
        if req.assignment_mode == AssignmentMode.DIRECT:
            emails = _direct_invitees(req.direct_assignee_ids)
            invitees = [(uid, emails[uid]) for uid in req.direct_assignee_ids]
        else:
            needed = REQUIRED_ASSIGNEES_COUNT - len(confirmed)
            invitees = []
            if needed > 0:
                selection = select_from_pool(
                    req.specialty_id,
                    blocked=set(confirmed),
                    needed=needed,
                    insufficient_message="No hay suficientes abogados elegibles en esa especialidad.",
                )
                invitees = [(c.user_id, c.email) for c in selection.picked]

        # Writes
        if selection is not None:
            advance_rotation(selection)
        now = utcnow()
        causa = Causa(
            caratula_tentativa=req.caratula_tentativa,
            specialty_id=req.specialty_id,
            objeto=req.objeto,
            resumen=req.resumen,
            jurisdiccion=req.jurisdiccion,
            brought_by_user_id=creator_id,
            brought_by_participates=req.brought_by_participates,
            assignment_mode=req.assignment_mode,
            direct_assignee_ids=list(req.direct_assignee_ids),
            direct_justification=req.direct_justification,
            required_assignees_count=REQUIRED_ASSIGNEES_COUNT,
            status=CausaStatus.DRAFT,
            created_at=now,
        )
        db.session.add(causa)
        db.session.flush()
        for uid in confirmed:
            db.session.add(CausaConfirmacion(causa_id=causa.id, user_id=uid, confirmed_at=now))
        for uid, email in invitees:
            db.session.add(
                Invitacion(
                    causa_id=causa.id,
                    invited_user_id=uid,
                    invited_email=email,
                    status=InviteStatus.PENDING,
                    mode=req.assignment_mode,
                    direct_justification=req.direct_justification,
                    invited_at=now,
                    responded_at=None,
                    created_by_user_id=creator_id,
                )
            )
        return causa

    causa = run_in_transaction(work)
    logger.info(
        "case %s created by %s mode=%s invites=%s",
        causa.id,
        creator_id,
        causa.assignment_mode.value,
        [inv.invited_user_id for inv in causa.invitations],
    )
    return causa


def _locked_causa(causa_id: int) -> Causa:
    causa = db.session.execute(select(Causa).where(Causa.id == causa_id).with_for_update()).scalar_one_or_none()
    if causa is None:
        raise NotFound("Causa no existe.")
    return causa


def _locked_invite(causa_id: int, invite_id: int) -> Invitacion:
    invite = db.session.execute(
        select(Invitacion)
        .where(Invitacion.id == invite_id, Invitacion.causa_id == causa_id)
        .with_for_update()
    ).scalar_one_or_none()
    if invite is None:
        raise NotFound("Invitación no existe.")
    return invite


def respond_to_invite(causa_id: int, invite_id: int, decision: InviteStatus, user_id: int) -> InviteResponse:
    def work() -> InviteResponse:
        # Reads
        causa = _locked_causa(causa_id)
        invite = _locked_invite(causa_id, invite_id)
        if invite.invited_user_id != user_id:
            raise PermissionDenied("No sos el invitado.")
        if invite.status != InviteStatus.PENDING:
            raise FailedPrecondition("Invitación ya respondida.")

        confirmed = causa.confirmed_user_ids
        already_invited = set(
            db.session.execute(select(Invitacion.invited_user_id).where(Invitacion.causa_id == causa.id)).scalars()
        )
        blocked = set(confirmed) | already_invited
        if causa.brought_by_participates:
            blocked.add(causa.brought_by_user_id)

        remaining_needed = max(0, causa.required_assignees_count - len(confirmed))
        should_replace = (
            decision == InviteStatus.REJECTED
            and causa.status != CausaStatus.ASSIGNED
            and remaining_needed > 0
        )

        selection: PoolSelection | None = None
        if should_replace:
            if causa.assignment_mode == AssignmentMode.AUTO:
                specialty_id = causa.specialty_id
                message = "No hay más abogados elegibles para reemplazo en esa especialidad."
            else:
                specialty_id = None
                message = "No hay más abogados elegibles para reemplazo (direct/global)."
            selection = select_from_pool(specialty_id, blocked=blocked, needed=1, insufficient_message=message)

        # Writes
        now = utcnow()
        invite.status = decision
        invite.responded_at = now
        outcome = InviteResponse(causa_id=causa.id, invite_id=invite.id, decision=decision, status=causa.status)

        if decision == InviteStatus.ACCEPTED:
            if user_id not in confirmed:
                causa.confirmations.append(CausaConfirmacion(user_id=user_id, confirmed_at=now))
                confirmed = confirmed + [user_id]
            done = len(confirmed) >= causa.required_assignees_count
            causa.status = CausaStatus.ASSIGNED if done else CausaStatus.DRAFT
            outcome.status = causa.status
            return outcome

        if selection is not None:
            replacement = selection.picked[0]
            db.session.add(
                Invitacion(
                    causa_id=causa.id,
                    invited_user_id=replacement.user_id,
                    invited_email=replacement.email,
                    status=InviteStatus.PENDING,
                    mode=causa.assignment_mode,
                    direct_justification=(
                        causa.direct_justification if causa.assignment_mode == AssignmentMode.DIRECT else ""
                    ),
                    invited_at=now,
                    responded_at=None,
                    created_by_user_id=causa.brought_by_user_id,
                )
            )
            advance_rotation(selection)
            causa.status = CausaStatus.DRAFT
            outcome.replacement_user_id = replacement.user_id
            outcome.status = causa.status
        return outcome

    return run_in_transaction(work)


def respond_invite(payload: dict, user_id: int) -> dict[str, object]:
    raw_case = str(payload.get("caseId") or "").strip()
    raw_invite = str(payload.get("inviteId") or "").strip()
    if not raw_case or not raw_invite:
        raise InvalidArgument("Falta caseId/inviteId.")
    decision = _parse_decision(payload.get("decision"))
    causa_id = parse_id(raw_case, "caseId")
    invite_id = parse_id(raw_invite, "inviteId")

    outcome = respond_to_invite(causa_id, invite_id, decision, user_id)
    logger.info(
        "invite %s of case %s %s by %s (replacement=%s, status=%s)",
        outcome.invite_id,
        outcome.causa_id,
        outcome.decision.value,
        user_id,
        outcome.replacement_user_id,
        outcome.status.value,
    )

    # Outside the transaction: a failed email never undoes the response
    notification: NotificationResult = notify_invite_decision(outcome.causa_id, outcome.decision)
    return {"ok": True, "emailSent": notification.sent, "emailError": notification.error}


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def serialize_invite(invite: Invitacion) -> dict[str, object]:
    return {
        "id": invite.id,
        "caseId": invite.causa_id,
        "invitedUid": invite.invited_user_id,
        "invitedEmail": invite.invited_email,
        "status": invite.status.value,
        "mode": invite.mode.value,
        "directJustification": invite.direct_justification,
        "invitedAt": _iso(invite.invited_at),
        "respondedAt": _iso(invite.responded_at),
        "createdByUid": invite.created_by_user_id,
    }


def serialize_causa(causa: Causa, include_invites: bool = False) -> dict[str, object]:
    data: dict[str, object] = {
        "id": causa.id,
        "caratulaTentativa": causa.caratula_tentativa,
        "specialtyId": causa.specialty_id,
        "specialtyName": causa.specialty.name if causa.specialty else "",
        "objeto": causa.objeto,
        "resumen": causa.resumen,
        "jurisdiccion": causa.jurisdiccion.value,
        "broughtByUid": causa.brought_by_user_id,
        "broughtByParticipates": causa.brought_by_participates,
        "assignmentMode": causa.assignment_mode.value,
        "directAssigneesUids": list(causa.direct_assignee_ids or []),
        "directJustification": causa.direct_justification,
        "requiredAssigneesCount": causa.required_assignees_count,
        "confirmedAssigneesUids": causa.confirmed_user_ids,
        "status": causa.status.value,
        "createdAt": _iso(causa.created_at),
    }
    if include_invites:
        data["invites"] = [serialize_invite(inv) for inv in causa.invitations]
    return data


def case_by_id(causa_id: int) -> Causa:
    causa = db.session.get(Causa, causa_id)
    if causa is None:
        raise NotFound("Causa no existe.")
    return causa


def list_cases(filters: dict[str, str], user_id: int) -> list[Causa]:
    query = Causa.query
    status = (filters.get("status") or "").strip().lower()
    if status and status != "all":
        try:
            query = query.filter(Causa.status == CausaStatus(status))
        except ValueError as exc:
            raise InvalidArgument(f"Estado invalido: {status}.") from exc
    jurisdiccion = (filters.get("jurisdiccion") or "").strip().lower()
    if jurisdiccion and jurisdiccion != "all":
        query = query.filter(Causa.jurisdiccion == _parse_jurisdiccion(jurisdiccion))
    specialty = (filters.get("specialtyId") or "").strip()
    if specialty and specialty != "all":
        query = query.filter(Causa.specialty_id == parse_id(specialty, "specialtyId"))
    brought_by = (filters.get("broughtByUid") or "").strip()
    if brought_by:
        query = query.filter(Causa.brought_by_user_id == parse_id(brought_by, "broughtByUid"))
    if (filters.get("mine") or "").strip() in {"1", "true"}:
        query = query.filter(Causa.brought_by_user_id == user_id)
    return query.order_by(Causa.created_at.desc(), Causa.id.desc()).all()


def list_user_invites(user_id: int, status: str = "pending") -> list[Invitacion]:
    query = Invitacion.query.filter(Invitacion.invited_user_id == user_id)
    status = (status or "").strip().lower()
    if status and status != "all":
        try:
            query = query.filter(Invitacion.status == InviteStatus(status))
        except ValueError as exc:
            raise InvalidArgument(f"Estado de invitación invalido: {status}.") from exc
    return query.order_by(Invitacion.invited_at.desc(), Invitacion.id.desc()).all()
