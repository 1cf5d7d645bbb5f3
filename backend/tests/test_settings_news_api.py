from __future__ import annotations

from app.models import News, Setting
from app.services.settings_service import KEY_EMAIL_CONTACT, SettingsService


async def test_public_settings_fall_back_to_defaults(client):
    res = await client.get("/api/settings")

    assert res.status_code == 200
    assert res.json() == {
        "contact": {"email": "", "phone": "", "address": ""},
        "social": {"facebook": "", "instagram": ""},
        "notifications": {"email_inscription": True, "email_contact": True},
    }


async def test_only_super_admin_updates_settings(client, admin_headers, super_headers):
    payload = {
        "contact": {"email": "contact@aloha-secourisme.fr", "phone": "01 23 45 67 89"},
        "notifications": {"email_contact": False},
    }

    denied = await client.post("/api/settings/admin", json=payload, headers=admin_headers)
    assert denied.status_code == 403

    res = await client.post("/api/settings/admin", json=payload, headers=super_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["contact"] == {
        "email": "contact@aloha-secourisme.fr",
        "phone": "01 23 45 67 89",
        "address": "",
    }
    assert body["notifications"] == {"email_inscription": True, "email_contact": False}

    # mise à jour partielle : les autres champs sont conservés
    again = await client.post(
        "/api/settings/admin", json={"contact": {"address": "12 rue de la Plage"}}, headers=super_headers
    )
    assert again.json()["contact"]["phone"] == "01 23 45 67 89"
    assert again.json()["contact"]["address"] == "12 rue de la Plage"


async def test_settings_update_rejects_unknown_sections(client, super_headers):
    res = await client.post("/api/settings/admin", json={"theme": {"color": "red"}}, headers=super_headers)
    assert res.status_code == 422


async def test_admin_view_exposes_system_keys(client, session_factory, admin_headers):
    async with session_factory() as session:
        session.add(Setting(key="lastBackup", value="2026-01-02T10:00:00+00:00"))
        await session.commit()

    res = await client.get("/api/settings/admin", headers=admin_headers)

    assert res.status_code == 200
    assert res.json()["system"] == {"lastBackup": "2026-01-02T10:00:00+00:00"}
    assert "system" not in (await client.get("/api/settings")).json()


async def test_notification_switch_reads_stored_value(session_factory):
    async with session_factory() as session:
        assert await SettingsService(session).is_enabled(KEY_EMAIL_CONTACT) is True
        await SettingsService(session).upsert_many({KEY_EMAIL_CONTACT: "false"})

    async with session_factory() as session:
        assert await SettingsService(session).is_enabled(KEY_EMAIL_CONTACT) is False


async def test_news_crud_and_public_visibility(client, admin_headers):
    created = await client.post(
        "/api/news/admin",
        json={"title": "Nouvelle session BNSSA", "content": "Inscriptions ouvertes", "published": False},
        headers=admin_headers,
    )
    assert created.status_code == 201
    news_id = created.json()["id"]

    assert (await client.get(f"/api/news/{news_id}")).status_code == 404
    assert (await client.get("/api/news")).json()["news"] == []

    published = await client.put(f"/api/news/admin/{news_id}", json={"published": True}, headers=admin_headers)
    assert published.status_code == 200

    detail = await client.get(f"/api/news/{news_id}")
    assert detail.status_code == 200
    assert detail.json()["title"] == "Nouvelle session BNSSA"

    deleted = await client.delete(f"/api/news/admin/{news_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert (await client.get(f"/api/news/admin/{news_id}", headers=admin_headers)).status_code == 404


async def test_public_news_pagination(client, session_factory):
    async with session_factory() as session:
        for i in range(5):
            session.add(News(title=f"Actu {i}", content="...", published=True))
        session.add(News(title="Brouillon", content="...", published=False))
        await session.commit()

    first = (await client.get("/api/news", params={"page": 1, "limit": 2})).json()
    last = (await client.get("/api/news", params={"page": 3, "limit": 2})).json()

    assert len(first["news"]) == 2
    assert first["pagination"] == {
        "total": 5,
        "total_pages": 3,
        "current_page": 1,
        "items_per_page": 2,
        "next_page": 2,
    }
    assert len(last["news"]) == 1
    assert last["pagination"]["next_page"] is None
    assert "Brouillon" not in {n["title"] for n in first["news"] + last["news"]}


async def test_news_admin_requires_auth(client):
    res = await client.post("/api/news/admin", json={"title": "x", "content": "y"})
    assert res.status_code == 401
