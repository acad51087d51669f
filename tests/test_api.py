import os

from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from roster_api import create_app
from roster_api.extensions import db
from roster_api.models.staff import Staff
from roster_api.services.patterns import LEGACY_STAFF

AL = {"is_leave": True, "leave_type": "AL"}


def _mk_app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    os.environ["ADMIN_PASSWORD_HASH"] = generate_password_hash("s3cret")
    app = create_app()
    with app.app_context():
        db.create_all()
        for row in LEGACY_STAFF:
            db.session.add(Staff(staff_id=row["staff_id"], name=row["name"], role=row["role"],
                                 weekly_hours=row["weekly_hours"], default_off_days=list(row["default_off_days"]),
                                 color_index=row["color_index"], is_active=True))
        db.session.commit()
    return app


def _admin_headers(app):
    with app.app_context():
        token = create_access_token(identity="admin", additional_claims={"roles": ["admin"]})
    return {"Authorization": f"Bearer {token}"}


def test_health():
    app = _mk_app()
    r = app.test_client().get("/api/health")
    assert r.status_code == 200
    assert r.get_json()["data"]["database"] == "connected"


def test_login():
    app = _mk_app()
    c = app.test_client()
    assert c.post("/api/v1/auth/login", json={"password": "nope"}).status_code == 401

    r = c.post("/api/v1/auth/login", json={"password": "s3cret"})
    assert r.status_code == 200
    token = r.get_json()["data"]["access"]
    r = c.get("/api/v1/schedule?year=2025&month=1&view=admin", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200


def test_admin_view_needs_admin_token():
    app = _mk_app()
    c = app.test_client()
    assert c.get("/api/v1/schedule?year=2025&month=1&view=admin").status_code == 403
    assert c.get("/api/v1/overrides?year=2025&month=1&view=admin").status_code == 403

    r = c.get("/api/v1/schedule?year=2025&month=1")
    assert r.status_code == 200
    body = r.get_json()["data"]
    assert body["view"] == "public"
    assert len(body["days"]) == 35
    assert {s["id"] for s in body["staff"]} == {"fatimah", "siti", "pah", "amal"}
    assert body["monthly_hours"]["fatimah"]["total_target"] == 225


def test_mutations_need_a_token():
    app = _mk_app()
    c = app.test_client()
    r = c.post("/api/v1/overrides", json={"year": 2025, "month": 3, "overrides": {}})
    assert r.status_code == 401

    with app.app_context():
        plain = create_access_token(identity="viewer", additional_claims={"roles": []})
    r = c.post("/api/v1/overrides/publish", json={"year": 2025, "month": 3},
               headers={"Authorization": f"Bearer {plain}"})
    assert r.status_code == 403


def test_draft_publish_cancel_cycle():
    app = _mk_app()
    c = app.test_client()
    h = _admin_headers(app)

    r = c.post("/api/v1/overrides", headers=h, json={
        "year": 2025, "month": 3, "overrides": {"2025-03-05": {"siti": AL}},
    })
    assert r.status_code == 200

    r = c.get("/api/v1/overrides?year=2025&month=3&view=admin", headers=h)
    body = r.get_json()
    assert body["meta"]["has_draft"] is True
    assert body["data"]["2025-03-05"]["siti"]["leave_type"] == "AL"
    assert c.get("/api/v1/overrides?year=2025&month=3").get_json()["data"] == {}

    r = c.post("/api/v1/overrides/publish", headers=h, json={"year": 2025, "month": 3})
    assert r.status_code == 200
    assert r.get_json()["data"]["leave_posted"] == 1

    r = c.post("/api/v1/overrides/publish", headers=h, json={"year": 2025, "month": 3})
    assert r.status_code == 404
    assert r.get_json()["error"]["code"] == "NOT_FOUND"

    balances = c.get("/api/v1/leave/balances?year=2025").get_json()["data"]
    siti = next(b for b in balances if b["staff_id"] == "siti")
    assert siti["AL"]["used"] == 1

    hist = c.get("/api/v1/leave/history?staff_id=siti").get_json()["data"]
    assert len(hist) == 1
    r = c.post(f"/api/v1/leave/history/{hist[0]['id']}/cancel", headers=h)
    assert r.status_code == 200 and r.get_json()["data"]["refunded"] is True
    r = c.post(f"/api/v1/leave/history/{hist[0]['id']}/cancel", headers=h)
    assert r.status_code == 409


def test_validation_errors():
    app = _mk_app()
    c = app.test_client()
    h = _admin_headers(app)
    assert c.get("/api/v1/schedule?year=2025&month=13").status_code == 422
    assert c.get("/api/v1/schedule?year=9999&month=12").status_code == 422
    assert c.get("/api/v1/schedule?year=2025&month=1&view=draft").status_code == 422
    r = c.post("/api/v1/overrides", headers=h, json={
        "year": 2025, "month": 3, "overrides": {"2025-03-05": {"siti": {"is_leave": True}}},
    })
    assert r.status_code == 422
    assert r.get_json()["error"]["code"] == "VALIDATION_ERROR"


def test_staff_crud():
    app = _mk_app()
    c = app.test_client()
    h = _admin_headers(app)

    r = c.post("/api/v1/staff", headers=h, json={
        "staff_id": "Nora Aziz", "name": "Nora", "role": "AssistantPharmacist", "weekly_hours": 40,
    })
    assert r.status_code == 201
    nora = r.get_json()["data"]
    assert nora["id"] == "noraaziz"
    assert nora["role"] == "Assistant Pharmacist"
    assert nora["default_off_days"] == [0, 6]
    assert nora["color_index"] == 4

    r = c.post("/api/v1/staff", headers=h, json={
        "staff_id": "noraaziz", "name": "Nora", "role": "Pharmacist", "weekly_hours": 40,
    })
    assert r.status_code == 409

    r = c.put("/api/v1/staff/noraaziz", headers=h, json={"al_entitlement": 20})
    assert r.get_json()["data"]["al_entitlement"] == 20

    assert c.delete("/api/v1/staff/noraaziz", headers=h).status_code == 200
    ids = [s["id"] for s in c.get("/api/v1/staff").get_json()["data"]]
    assert "noraaziz" not in ids
    assert c.get("/api/v1/staff/ghost").status_code == 404


def test_maternity_and_export_endpoints():
    app = _mk_app()
    c = app.test_client()
    h = _admin_headers(app)

    r = c.post("/api/v1/leave/maternity", headers=h, json={"staff_id": "fatimah", "start_date": "2025-01-15"})
    assert r.status_code == 201
    assert r.get_json()["data"]["end_date"] == "2025-04-22"
    r = c.post("/api/v1/leave/maternity", headers=h, json={"staff_id": "fatimah", "start_date": "2025-02-01"})
    assert r.status_code == 409
    assert len(c.get("/api/v1/leave/maternity").get_json()["data"]) == 1

    r = c.get("/api/v1/schedule/export.csv?year=2025&month=1")
    assert r.status_code == 200
    assert r.mimetype == "text/csv"
    assert r.get_data(as_text=True).startswith("Day,Month,Date,,")
