from __future__ import annotations

import threading
import time

import pytest

from causas.assignment import rotation
from causas.assignment.services import create_case_with_invites, respond_to_invite
from causas.core.extensions import db
from causas.core.models import (
    Especialidad,
    InviteStatus,
    Invitacion,
    RotationState,
    User,
)


@pytest.fixture
def slow_pool(monkeypatch):
    # Keep each transaction open after its pool read so the threads overlap
    load_pool = rotation.load_candidate_pool

    def _load(specialty_id):
        pool = load_pool(specialty_id)
        time.sleep(0.3)
        return pool

    monkeypatch.setattr(rotation, "load_candidate_pool", _load)


def _seed_familia(app, names: list[str]) -> dict[str, int]:
    with app.app_context():
        familia = Especialidad(name="Familia")
        laboral = Especialidad(name="Laboral")
        db.session.add_all([familia, laboral])
        creador = User(email="creador@estudio.local", password_hash="-", specialties=[laboral])
        lawyers = {name: User(email=f"{name}@estudio.local", password_hash="-", specialties=[familia]) for name in names}
        db.session.add_all([creador, *lawyers.values()])
        db.session.flush()
        db.session.add(RotationState(pool_key=str(familia.id), cursor=0))
        db.session.commit()
        ids = {name: user.id for name, user in lawyers.items()}
        ids["creador"] = creador.id
        ids["familia"] = familia.id
        return ids


def _case_payload(specialty_id: int) -> dict:
    return {
        "caratulaTentativa": "Perez c/ Gomez s/ alimentos",
        "specialtyId": str(specialty_id),
        "objeto": "Cuota alimentaria",
        "resumen": "Reclamo de cuota alimentaria provisoria",
        "jurisdiccion": "caba",
        "broughtByParticipates": True,
    }


def _run_together(app, *calls):
    results = [None] * len(calls)
    errors: list[Exception] = []

    def _worker(idx, call):
        with app.app_context():
            try:
                results[idx] = call()
            except Exception as exc:
                errors.append(exc)

    threads = [threading.Thread(target=_worker, args=(idx, call)) for idx, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results, errors


def _cursor(app, pool_key: str) -> int:
    with app.app_context():
        return db.session.get(RotationState, pool_key).cursor


def test_concurrent_cases_in_two_lawyer_pool_pick_different_lawyers(file_app, slow_pool):
    ids = _seed_familia(file_app, ["ana", "bruno"])
    payload = _case_payload(ids["familia"])

    case_ids, errors = _run_together(
        file_app,
        lambda: create_case_with_invites(payload, ids["creador"]).id,
        lambda: create_case_with_invites(payload, ids["creador"]).id,
    )

    assert errors == []
    with file_app.app_context():
        invited = [Invitacion.query.filter_by(causa_id=case_id).one().invited_user_id for case_id in case_ids]
    assert sorted(invited) == sorted([ids["ana"], ids["bruno"]])
    assert _cursor(file_app, str(ids["familia"])) == 0


def test_concurrent_rejections_draw_distinct_replacements(file_app, slow_pool):
    ids = _seed_familia(file_app, ["ana", "bruno", "carla", "dario"])
    payload = _case_payload(ids["familia"])

    with file_app.app_context():
        first = create_case_with_invites(payload, ids["creador"]).id
        second = create_case_with_invites(payload, ids["creador"]).id
        ana_invite = Invitacion.query.filter_by(causa_id=first, invited_user_id=ids["ana"]).one().id
        bruno_invite = Invitacion.query.filter_by(causa_id=second, invited_user_id=ids["bruno"]).one().id
    assert _cursor(file_app, str(ids["familia"])) == 2

    replacements, errors = _run_together(
        file_app,
        lambda: respond_to_invite(first, ana_invite, InviteStatus.REJECTED, ids["ana"]).replacement_user_id,
        lambda: respond_to_invite(second, bruno_invite, InviteStatus.REJECTED, ids["bruno"]).replacement_user_id,
    )

    assert errors == []
    assert sorted(replacements) == sorted([ids["carla"], ids["dario"]])
    assert _cursor(file_app, str(ids["familia"])) == 0
    with file_app.app_context():
        for case_id in (first, second):
            pending = Invitacion.query.filter_by(causa_id=case_id, status=InviteStatus.PENDING).all()
            assert len(pending) == 1
