from __future__ import annotations

from causas.core.extensions import db
from causas.core.models import Especialidad, User, UserRole


def test_login_me_and_logout(client, firm, login_as):
    bad = login_as("ana@estudio.local", "incorrecta")
    assert bad.status_code == 401
    assert bad.get_json()["error"]["message"] == "Credenciales invalidas."

    ok = login_as("ANA@estudio.local")
    assert ok.status_code == 200
    assert ok.get_json() == {"ok": True, "uid": firm["ana"], "role": "lawyer"}

    me = client.get("/auth/me").get_json()
    assert me["email"] == "ana@estudio.local"
    assert me["isPracticing"] is True
    assert me["specialties"] == [firm["familia"]]

    assert client.post("/auth/logout").status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_admin_endpoints_reject_lawyers(client, firm, login_as):
    login_as("ana@estudio.local")
    response = client.get("/api/admin/lawyers")
    assert response.status_code == 403
    assert response.get_json()["error"]["code"] == "permission-denied"
    assert client.post("/api/admin/specialties", json={"name": "Penal"}).status_code == 403


def test_admin_creates_and_updates_lawyer(app, client, firm, login_as):
    login_as("admin@estudio.local")
    created = client.post(
        "/api/admin/lawyers",
        json={
            "email": "Fede@Estudio.local",
            "password": "clave123",
            "specialties": [str(firm["laboral"])],
        },
    )
    assert created.status_code == 201
    uid = created.get_json()["uid"]

    duplicate = client.post("/api/admin/lawyers", json={"email": "fede@estudio.local", "password": "clave123"})
    assert duplicate.status_code == 409
    assert duplicate.get_json()["error"]["code"] == "already-exists"

    short = client.post("/api/admin/lawyers", json={"email": "gaby@estudio.local", "password": "123"})
    assert short.status_code == 400

    updated = client.patch(
        f"/api/admin/lawyers/{uid}",
        json={"specialties": [firm["familia"], firm["laboral"]], "isPracticing": False},
    )
    assert updated.status_code == 200
    lawyer = updated.get_json()["lawyer"]
    assert lawyer["email"] == "fede@estudio.local"
    assert lawyer["isPracticing"] is False
    assert lawyer["specialties"] == sorted([firm["familia"], firm["laboral"]])

    unknown = client.patch(f"/api/admin/lawyers/{uid}", json={"specialties": [9999]})
    assert unknown.status_code == 400
    assert client.patch("/api/admin/lawyers/9999", json={"isPracticing": True}).status_code == 404

    emails = [row["email"] for row in client.get("/api/admin/lawyers").get_json()["lawyers"]]
    assert emails == sorted(emails)
    assert "fede@estudio.local" in emails


def test_practicing_directory_lists_only_practicing(client, firm, login_as):
    login_as("ana@estudio.local")
    lawyers = client.get("/api/lawyers/practicing").get_json()["lawyers"]
    assert [row["email"] for row in lawyers] == [
        "ana@estudio.local",
        "bruno@estudio.local",
        "carla@estudio.local",
        "creador@estudio.local",
        "dario@estudio.local",
    ]


def test_password_reset_and_deactivation(app, client, firm, login_as):
    login_as("admin@estudio.local")
    assert client.post(f"/api/admin/lawyers/{firm['dario']}/password", json={"password": "nueva123"}).status_code == 200
    assert client.delete(f"/api/admin/lawyers/{firm['carla']}").status_code == 200

    with app.app_context():
        carla = db.session.get(User, firm["carla"])
        assert carla.is_active is False
        assert carla.is_practicing is False
        assert carla.specialties == []

    assert login_as("dario@estudio.local", "nueva123").status_code == 200
    assert login_as("carla@estudio.local").status_code == 401


def test_deactivated_lawyer_leaves_rotation(app, client, firm, login_as, create_case):
    login_as("admin@estudio.local")
    client.delete(f"/api/admin/lawyers/{firm['ana']}")

    login_as("creador@estudio.local")
    case_id = create_case(firm["familia"], broughtByParticipates=False).get_json()["caseId"]
    detail = client.get(f"/api/cases/{case_id}").get_json()
    assert [i["invitedUid"] for i in detail["invites"]] == [firm["bruno"], firm["carla"]]


def test_specialty_catalog(app, client, firm, login_as):
    login_as("admin@estudio.local")
    created = client.post("/api/admin/specialties", json={"name": "Penal"})
    assert created.status_code == 201
    penal = created.get_json()
    assert penal["name"] == "Penal"
    assert penal["active"] is True

    assert client.post("/api/admin/specialties", json={"name": "penal"}).status_code == 409
    assert client.post("/api/admin/specialties", json={"name": " "}).status_code == 400

    toggled = client.patch(f"/api/admin/specialties/{penal['id']}", json={"active": False})
    assert toggled.get_json()["active"] is False
    assert client.patch(f"/api/admin/specialties/{penal['id']}", json={}).status_code == 400
    assert client.patch("/api/admin/specialties/9999", json={"active": True}).status_code == 404

    names = [row["name"] for row in client.get("/api/specialties").get_json()["specialties"]]
    assert names == ["Familia", "Laboral"]
    every = [row["name"] for row in client.get("/api/admin/specialties").get_json()["specialties"]]
    assert every == ["Familia", "Laboral", "Penal"]

    with app.app_context():
        assert Especialidad.query.count() == 3


def test_create_admin_service_makes_non_practicing_admin(app, firm):
    from causas.lawyers.services import create_admin

    with app.app_context():
        user = create_admin("jefa@estudio.local", "jefa1234")
        assert user.role == UserRole.ADMIN
        assert user.is_practicing is False
