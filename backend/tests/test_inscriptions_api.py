from __future__ import annotations

import uuid
from datetime import date, timedelta

from app.core.rate_limit import rate_limiter
from app.core.settings import settings
from tests.helpers import inscription_payload, make_formation, seats_of


async def test_public_inscription_creates_pending_registration(client, session_factory, mailer, formation):
    res = await client.post("/api/inscriptions", json=inscription_payload(formation.id))

    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "PENDING"
    assert body["formation"]["id"] == str(formation.id)
    assert body["first_name"] == "Léa"
    assert await seats_of(session_factory, formation.id) == 9
    assert "INSCRIPTION_CONFIRMATION" in mailer.templates()


async def test_full_formation_returns_homogeneous_error(client, session_factory):
    formation = await make_formation(session_factory, total_seats=2, available_seats=0)

    res = await client.post(
        "/api/inscriptions",
        json=inscription_payload(formation.id),
        headers={"X-Request-Id": "req-full-123"},
    )

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "INVALID_REQUEST"
    assert error["message"] == "Plus de places disponibles pour cette formation"
    assert error["status"] == 400
    assert error["request_id"] == "req-full-123"
    assert res.headers["X-Request-Id"] == "req-full-123"


async def test_invalid_payload_is_a_validation_error(client, formation):
    res = await client.post(
        "/api/inscriptions",
        json=inscription_payload(formation.id, email="not-an-email", birthdate="2999-01-01"),
    )

    assert res.status_code == 422
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    fields = {tuple(d["loc"])[-1] for d in error["details"]}
    assert {"email", "birthdate"} <= fields


async def test_unknown_fields_are_rejected(client, formation):
    res = await client.post("/api/inscriptions", json=inscription_payload(formation.id, status="ACCEPTED"))
    assert res.status_code == 422


async def test_admin_routes_require_authentication(client, formation):
    res = await client.get("/api/inscriptions/admin")

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHORIZED"
    assert res.headers["WWW-Authenticate"] == "Bearer"


async def test_admin_workflow(client, session_factory, admin_headers, formation):
    created = (await client.post("/api/inscriptions", json=inscription_payload(formation.id))).json()
    inscription_id = created["id"]

    listing = await client.get("/api/inscriptions/admin", params={"status": "PENDING"}, headers=admin_headers)
    assert listing.status_code == 200
    assert [i["id"] for i in listing.json()] == [inscription_id]

    accepted = await client.put(
        f"/api/inscriptions/admin/{inscription_id}/status",
        json={"status": "ACCEPTED"},
        headers=admin_headers,
    )
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "ACCEPTED"
    assert accepted.json()["notified"] is True
    assert await seats_of(session_factory, formation.id) == 9

    invalid = await client.put(
        f"/api/inscriptions/admin/{inscription_id}/status",
        json={"status": "PENDING"},
        headers=admin_headers,
    )
    assert invalid.status_code == 400

    deleted = await client.delete(f"/api/inscriptions/admin/{inscription_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert await seats_of(session_factory, formation.id) == 10

    missing = await client.get(f"/api/inscriptions/admin/{inscription_id}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"


async def test_listing_filters_by_formation(client, session_factory, admin_headers, formation):
    other = await make_formation(session_factory, total_seats=4, title="PSE1")
    await client.post("/api/inscriptions", json=inscription_payload(formation.id))
    await client.post("/api/inscriptions", json=inscription_payload(other.id, email="b@example.com"))

    res = await client.get("/api/inscriptions/admin", params={"formation_id": str(other.id)}, headers=admin_headers)

    assert res.status_code == 200
    assert [i["email"] for i in res.json()] == ["b@example.com"]


async def test_update_inscription_fields(client, admin_headers, formation):
    created = (await client.post("/api/inscriptions", json=inscription_payload(formation.id))).json()

    res = await client.put(
        f"/api/inscriptions/admin/{created['id']}",
        json={"message": "Arrivera en retard", "notified": True},
        headers=admin_headers,
    )

    assert res.status_code == 200
    assert res.json()["message"] == "Arrivera en retard"
    assert res.json()["notified"] is True
    assert res.json()["status"] == "PENDING"


async def test_admin_update_rejects_future_birthdate(client, admin_headers, formation):
    created = (await client.post("/api/inscriptions", json=inscription_payload(formation.id))).json()
    tomorrow = (date.today() + timedelta(days=1)).isoformat()

    res = await client.put(
        f"/api/inscriptions/admin/{created['id']}",
        json={"birthdate": tomorrow},
        headers=admin_headers,
    )

    assert res.status_code == 422
    assert "birthdate" in {tuple(d["loc"])[-1] for d in res.json()["error"]["details"]}
    unchanged = await client.get(f"/api/inscriptions/admin/{created['id']}", headers=admin_headers)
    assert unchanged.json()["birthdate"] == created["birthdate"]


async def test_unknown_inscription_id(client, admin_headers):
    res = await client.get(f"/api/inscriptions/admin/{uuid.uuid4()}", headers=admin_headers)
    assert res.status_code == 404


async def test_contact_form_notifies_admin_and_sender(client, mailer):
    res = await client.post(
        "/api/inscriptions/contact",
        json={"name": "Paul", "email": "paul@example.com", "subject": "Tarifs", "message": "Bonjour"},
    )

    assert res.status_code == 200
    assert res.json() == {"message": "Message envoyé avec succès"}
    assert [m["to"] for m in mailer.sent] == [settings.ADMIN_EMAIL, "paul@example.com"]
    assert mailer.templates() == ["NOTIFICATION_CONTACT", "CONFIRMATION_CONTACT"]


async def test_signalement_and_sauvetage_forms(client, mailer):
    signalement = await client.post(
        "/api/inscriptions/signalement",
        json={"name": "Paul", "email": "paul@example.com", "type": "Matériel", "details": "DAE hors service"},
    )
    sauvetage = await client.post(
        "/api/inscriptions/sauvetage-sportif",
        json={
            "first_name": "Inès",
            "last_name": "Roux",
            "email": "ines@example.com",
            "phone": "0611223344",
            "birthdate": "2010-05-04",
        },
    )

    assert signalement.status_code == 200
    assert sauvetage.status_code == 200
    assert mailer.templates() == [
        "NOTIFICATION_SIGNALEMENT",
        "CONFIRMATION_SIGNALEMENT",
        "NOTIFICATION_SAUVETAGE_SPORTIF",
        "CONFIRMATION_SAUVETAGE_SPORTIF",
    ]
    assert mailer.sent[0]["data"]["signalement"]["location"] == "Non spécifié"


async def test_contact_without_admin_email_is_rejected(client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "")

    res = await client.post(
        "/api/inscriptions/contact",
        json={"name": "Paul", "email": "paul@example.com", "subject": "Tarifs", "message": "Bonjour"},
    )

    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Adresse email de l'admin non configurée"


async def test_public_forms_are_rate_limited(client, monkeypatch, formation):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "RATE_LIMIT_RPM", 2)
    rate_limiter.reset()

    payload = {"name": "Paul", "email": "paul@example.com", "subject": "Spam", "message": "..."}
    codes = [(await client.post("/api/inscriptions/contact", json=payload)).status_code for _ in range(3)]

    assert codes == [200, 200, 429]
    # Les lectures ne sont jamais limitées
    assert (await client.get("/api/formations")).status_code == 200
