from __future__ import annotations

from io import BytesIO

from PIL import Image as PILImage

from app.core.security import decode_access_token
from app.models.enums import Role
from tests.helpers import auth_headers, make_admin


def png_bytes(width: int = 800, height: int = 600) -> bytes:
    out = BytesIO()
    PILImage.new("RGB", (width, height), (200, 30, 30)).save(out, "PNG")
    return out.getvalue()


async def test_login_returns_token_and_profile(client, admin):
    res = await client.post(
        "/api/auth/login",
        json={"email": "Admin@Aloha-Secourisme.fr", "password": "password123"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "admin@aloha-secourisme.fr"
    assert "password_hash" not in body["user"]

    claims = decode_access_token(body["access_token"])
    assert claims["sub"] == str(admin.id)
    assert claims["role"] == "ADMIN"


async def test_login_with_wrong_credentials_is_rejected(client, admin):
    wrong_password = await client.post(
        "/api/auth/login", json={"email": "admin@aloha-secourisme.fr", "password": "nope"}
    )
    unknown_email = await client.post(
        "/api/auth/login", json={"email": "ghost@aloha-secourisme.fr", "password": "password123"}
    )

    for res in (wrong_password, unknown_email):
        assert res.status_code == 401
        assert res.json()["error"]["message"] == "Identifiants invalides"


async def test_invalid_token_is_rejected(client):
    res = await client.get("/api/admin/users/me", headers={"Authorization": "Bearer abc.def.ghi"})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHORIZED"


async def test_token_of_deleted_admin_is_rejected(client, session_factory, super_headers):
    ghost = await make_admin(session_factory, email="ghost@aloha-secourisme.fr", role=Role.ADMIN)
    headers = auth_headers(ghost)

    res = await client.delete(f"/api/admin/users/{ghost.id}", headers=super_headers)
    assert res.status_code == 200

    assert (await client.get("/api/admin/users/me", headers=headers)).status_code == 401


async def test_me_returns_current_admin(client, admin, admin_headers):
    res = await client.get("/api/admin/users/me", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["id"] == str(admin.id)


async def test_admin_only_sees_admin_accounts(client, admin, super_admin, admin_headers, super_headers):
    as_admin = await client.get("/api/admin/users", headers=admin_headers)
    as_super = await client.get("/api/admin/users", headers=super_headers)

    assert [u["email"] for u in as_admin.json()] == ["admin@aloha-secourisme.fr"]
    assert {u["email"] for u in as_super.json()} == {"admin@aloha-secourisme.fr", "super@aloha-secourisme.fr"}

    hidden = await client.get(f"/api/admin/users/{super_admin.id}", headers=admin_headers)
    assert hidden.status_code == 403


async def test_account_management_requires_super_admin(client, admin, admin_headers):
    payload = {
        "email": "nouveau@aloha-secourisme.fr",
        "password": "motdepasse1",
        "last_name": "Durand",
        "first_name": "Paul",
    }

    assert (await client.post("/api/admin/users", json=payload, headers=admin_headers)).status_code == 403
    assert (
        await client.put(f"/api/admin/users/{admin.id}", json={"first_name": "X"}, headers=admin_headers)
    ).status_code == 403
    assert (await client.delete(f"/api/admin/users/{admin.id}", headers=admin_headers)).status_code == 403


async def test_super_admin_creates_and_updates_accounts(client, super_headers):
    payload = {
        "email": "Nouveau@Aloha-Secourisme.fr",
        "password": "motdepasse1",
        "last_name": "Durand",
        "first_name": "Paul",
    }
    created = await client.post("/api/admin/users", json=payload, headers=super_headers)
    assert created.status_code == 201
    assert created.json()["email"] == "nouveau@aloha-secourisme.fr"
    assert created.json()["role"] == "ADMIN"

    duplicate = await client.post("/api/admin/users", json=payload, headers=super_headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "CONFLICT"

    user_id = created.json()["id"]
    updated = await client.put(
        f"/api/admin/users/{user_id}",
        json={"role": "SUPER_ADMIN", "password": "autremotdepasse"},
        headers=super_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["role"] == "SUPER_ADMIN"

    login = await client.post(
        "/api/auth/login", json={"email": "nouveau@aloha-secourisme.fr", "password": "autremotdepasse"}
    )
    assert login.status_code == 200


async def test_last_super_admin_is_protected(client, super_admin, super_headers):
    demote = await client.put(
        f"/api/admin/users/{super_admin.id}", json={"role": "ADMIN"}, headers=super_headers
    )
    delete = await client.delete(f"/api/admin/users/{super_admin.id}", headers=super_headers)

    assert demote.status_code == 400
    assert delete.status_code == 400
    assert (await client.get("/api/admin/users/me", headers=super_headers)).json()["role"] == "SUPER_ADMIN"


async def test_second_super_admin_can_be_removed(client, session_factory, super_headers):
    other = await make_admin(session_factory, email="super2@aloha-secourisme.fr", role=Role.SUPER_ADMIN)

    res = await client.delete(f"/api/admin/users/{other.id}", headers=super_headers)

    assert res.status_code == 200
    assert (await client.get(f"/api/admin/users/{other.id}", headers=super_headers)).status_code == 404


async def test_change_password(client, admin_headers):
    wrong = await client.put(
        "/api/admin/users/profile/password",
        json={"current_password": "incorrect", "new_password": "nouveaumotdepasse"},
        headers=admin_headers,
    )
    assert wrong.status_code == 400

    ok = await client.put(
        "/api/admin/users/profile/password",
        json={"current_password": "password123", "new_password": "nouveaumotdepasse"},
        headers=admin_headers,
    )
    assert ok.status_code == 200

    login = await client.post(
        "/api/auth/login", json={"email": "admin@aloha-secourisme.fr", "password": "nouveaumotdepasse"}
    )
    assert login.status_code == 200


async def test_avatar_upload_resizes_and_replaces(client, admin_headers, uploads_dir):
    first = await client.put(
        "/api/admin/users/profile/avatar",
        files={"file": ("moi.png", png_bytes(), "image/png")},
        headers=admin_headers,
    )
    assert first.status_code == 200
    first_url = first.json()["avatar"]
    assert first_url.startswith("/uploads/avatars/")

    stored = uploads_dir / "avatars" / first_url.rsplit("/", 1)[-1]
    with PILImage.open(stored) as img:
        assert img.width == 512

    second = await client.put(
        "/api/admin/users/profile/avatar",
        files={"file": ("moi2.png", png_bytes(300, 300), "image/png")},
        headers=admin_headers,
    )
    assert second.status_code == 200
    assert second.json()["avatar"] != first_url
    assert not stored.exists()


async def test_avatar_rejects_non_images(client, admin_headers):
    res = await client.put(
        "/api/admin/users/profile/avatar",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )
    assert res.status_code == 400
