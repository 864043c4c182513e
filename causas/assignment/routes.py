from __future__ import annotations

from flask import jsonify, request
from flask_login import current_user

from causas.assignment import assignment_bp
from causas.assignment.services import (
    case_by_id,
    create_case_with_invites,
    list_cases,
    list_user_invites,
    parse_id,
    respond_invite,
    serialize_causa,
    serialize_invite,
)
from causas.core.permissions import require_login


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@assignment_bp.post("/createCaseWithInvites")
@require_login
def create_case():
    causa = create_case_with_invites(_payload(), current_user.id)
    return jsonify({"caseId": causa.id})


@assignment_bp.post("/respondInvite")
@require_login
def respond():
    return jsonify(respond_invite(_payload(), current_user.id))


@assignment_bp.get("/cases")
@require_login
def cases_list():
    filters = {k: v for k, v in request.args.items()}
    rows = list_cases(filters, current_user.id)
    return jsonify({"cases": [serialize_causa(c) for c in rows]})


@assignment_bp.get("/cases/<case_id>")
@require_login
def case_detail(case_id: str):
    causa = case_by_id(parse_id(case_id, "caseId"))
    return jsonify(serialize_causa(causa, include_invites=True))


@assignment_bp.get("/invites")
@require_login
def my_invites():
    invites = list_user_invites(current_user.id, request.args.get("status", "pending"))
    rows = []
    for invite in invites:
        row = serialize_invite(invite)
        row["caratulaTentativa"] = invite.causa.caratula_tentativa
        rows.append(row)
    return jsonify({"invites": rows})
