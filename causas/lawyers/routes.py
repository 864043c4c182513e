from __future__ import annotations

from flask import jsonify, request

from causas.core.permissions import require_login, require_role
from causas.lawyers import lawyers_bp
from causas.lawyers.services import (
    create_lawyer,
    create_specialty,
    deactivate_lawyer,
    list_lawyers,
    list_practicing_lawyers,
    list_specialties,
    serialize_lawyer,
    serialize_specialty,
    set_lawyer_password,
    set_specialty_active,
    update_lawyer_profile,
)


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@lawyers_bp.get("/specialties")
@require_login
def specialties():
    return jsonify({"specialties": [serialize_specialty(s) for s in list_specialties()]})


@lawyers_bp.get("/lawyers/practicing")
@require_login
def practicing_lawyers():
    # Direct assignment may pick any practicing lawyer, regardless of specialty
    return jsonify({"lawyers": [serialize_lawyer(u) for u in list_practicing_lawyers()]})


@lawyers_bp.get("/admin/lawyers")
@require_role("admin")
def admin_lawyers():
    return jsonify({"lawyers": [serialize_lawyer(u) for u in list_lawyers()]})


@lawyers_bp.post("/admin/lawyers")
@require_role("admin")
def admin_create_lawyer():
    user = create_lawyer(_payload())
    return jsonify({"ok": True, "uid": user.id}), 201


@lawyers_bp.patch("/admin/lawyers/<int:user_id>")
@require_role("admin")
def admin_update_lawyer(user_id: int):
    user = update_lawyer_profile(user_id, _payload())
    return jsonify({"ok": True, "lawyer": serialize_lawyer(user)})


@lawyers_bp.post("/admin/lawyers/<int:user_id>/password")
@require_role("admin")
def admin_set_password(user_id: int):
    set_lawyer_password(user_id, _payload())
    return jsonify({"ok": True})


@lawyers_bp.delete("/admin/lawyers/<int:user_id>")
@require_role("admin")
def admin_delete_lawyer(user_id: int):
    deactivate_lawyer(user_id)
    return jsonify({"ok": True})


@lawyers_bp.get("/admin/specialties")
@require_role("admin")
def admin_specialties():
    rows = list_specialties(include_inactive=True)
    return jsonify({"specialties": [serialize_specialty(s) for s in rows]})


@lawyers_bp.post("/admin/specialties")
@require_role("admin")
def admin_create_specialty():
    specialty = create_specialty(_payload())
    return jsonify(serialize_specialty(specialty)), 201


@lawyers_bp.patch("/admin/specialties/<int:specialty_id>")
@require_role("admin")
def admin_toggle_specialty(specialty_id: int):
    specialty = set_specialty_active(specialty_id, _payload())
    return jsonify(serialize_specialty(specialty))
