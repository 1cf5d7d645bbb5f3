from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image as PILImage

from app.core.errors import AppHTTPException
from app.core.settings import settings
from app.services import storage
from app.services.gallery_service import optimize_image

PDF_BYTES = b"%PDF-1.4\n% fiche PSC1\n%%EOF\n"


def image_bytes(width: int, height: int, fmt: str = "PNG") -> bytes:
    out = BytesIO()
    PILImage.new("RGB", (width, height), (20, 120, 200)).save(out, fmt)
    return out.getvalue()


async def upload_document(client, headers, *, title="Fiche PSC1", category="FORMATIONS_GRAND_PUBLIC", name="Fiche PSC1 été.pdf"):
    return await client.post(
        "/api/documents/admin",
        data={"title": title, "category": category},
        files={"file": (name, PDF_BYTES, "application/pdf")},
        headers=headers,
    )


@pytest.mark.parametrize(
    "original, expected",
    [
        ("Fiche PSC1 été.pdf", "Fiche-PSC1-ete.pdf"),
        ("../../etc/passwd", "passwd"),
        ("", "fichier"),
    ],
)
def test_sanitize_filename(original, expected):
    assert storage.sanitize_filename(original) == expected


def test_optimize_image_limits_width():
    data, ext = optimize_image(image_bytes(3000, 1500, "JPEG"))

    assert ext == ".jpg"
    with PILImage.open(BytesIO(data)) as img:
        assert img.size == (1920, 960)


def test_optimize_image_rejects_garbage():
    with pytest.raises(AppHTTPException) as excinfo:
        optimize_image(b"not an image")
    assert excinfo.value.status_code == 400


async def test_document_upload_and_download(client, admin_headers, uploads_dir):
    created = await upload_document(client, admin_headers)

    assert created.status_code == 201
    doc = created.json()
    assert doc["filename"].endswith("-Fiche-PSC1-ete.pdf")
    assert doc["size"] == len(PDF_BYTES)
    assert doc["downloads"] == 0
    assert (uploads_dir / "documents" / doc["filename"]).read_bytes() == PDF_BYTES

    for _ in range(2):
        res = await client.get(doc["url"])
        assert res.status_code == 200
        assert res.content == PDF_BYTES
        assert res.headers["content-type"] == "application/pdf"

    detail = await client.get(f"/api/documents/admin/{doc['id']}", headers=admin_headers)
    assert detail.json()["downloads"] == 2


async def test_document_listing_by_category(client, admin_headers):
    await upload_document(client, admin_headers, title="Fiche PSC1", name="a.pdf")
    await upload_document(client, admin_headers, title="Règlement BNSSA", category="SAUVETAGE_SPORTIF", name="b.pdf")

    everything = await client.get("/api/documents")
    sauvetage = await client.get("/api/documents", params={"category": "SAUVETAGE_SPORTIF"})

    assert len(everything.json()) == 2
    assert [d["title"] for d in sauvetage.json()] == ["Règlement BNSSA"]


async def test_document_update_and_delete_removes_file(client, admin_headers, uploads_dir):
    doc = (await upload_document(client, admin_headers)).json()

    updated = await client.put(
        f"/api/documents/admin/{doc['id']}", json={"title": "Fiche PSC1 2026"}, headers=admin_headers
    )
    assert updated.json()["title"] == "Fiche PSC1 2026"

    deleted = await client.delete(f"/api/documents/admin/{doc['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert not (uploads_dir / "documents" / doc["filename"]).exists()
    assert (await client.get(doc["url"])).status_code == 404


async def test_document_upload_requires_file_and_title(client, admin_headers):
    no_file = await client.post("/api/documents/admin", data={"title": "Sans fichier"}, headers=admin_headers)
    blank_title = await upload_document(client, admin_headers, title="   ")

    assert no_file.status_code == 400
    assert blank_title.status_code == 400


async def test_document_size_limit(client, admin_headers, monkeypatch):
    monkeypatch.setattr(settings, "MAX_DOCUMENT_SIZE_MB", 1)

    res = await client.post(
        "/api/documents/admin",
        data={"title": "Trop gros"},
        files={"file": ("gros.pdf", b"0" * (1024 * 1024 + 1), "application/pdf")},
        headers=admin_headers,
    )

    assert res.status_code == 413
    assert res.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"


async def upload_image(client, headers, *, category="formations", name="photo.png", size=(2400, 1200)):
    return await client.post(
        "/api/gallery/admin",
        data={"alt": f"Photo {name}", "category": category},
        files={"file": (name, image_bytes(*size), "image/png")},
        headers=headers,
    )


async def test_gallery_upload_resizes_image(client, admin_headers, uploads_dir):
    res = await upload_image(client, admin_headers)

    assert res.status_code == 201
    body = res.json()
    assert body["url"] == f"/uploads/galerie/{body['filename']}"
    with PILImage.open(uploads_dir / "galerie" / body["filename"]) as img:
        assert img.size == (1920, 960)


async def test_gallery_rejects_unsupported_types(client, admin_headers):
    res = await client.post(
        "/api/gallery/admin",
        data={"alt": "GIF", "category": "equipe"},
        files={"file": ("anim.gif", b"GIF89a", "image/gif")},
        headers=admin_headers,
    )
    assert res.status_code == 400


async def test_public_gallery_modes(client, admin_headers):
    for i in range(3):
        await upload_image(client, admin_headers, name=f"formation-{i}.png", size=(64, 64))
    for i in range(3):
        await upload_image(client, admin_headers, category="equipe", name=f"equipe-{i}.png", size=(64, 64))

    grouped = (await client.get("/api/gallery")).json()
    assert [g["category"] for g in grouped] == ["formations", "evenements", "equipe", "sauvetage"]
    assert [len(g["images"]) for g in grouped] == [3, 0, 3, 0]

    equipe = (await client.get("/api/gallery", params={"category": "equipe"})).json()
    assert {i["category"] for i in equipe} == {"equipe"}

    random_pick = (await client.get("/api/gallery", params={"mode": "random"})).json()
    assert len(random_pick) == 4

    assert (await client.get("/api/gallery", params={"mode": "shuffle"})).status_code == 422


async def test_gallery_update_and_delete(client, admin_headers, uploads_dir):
    image = (await upload_image(client, admin_headers, size=(64, 64))).json()

    updated = await client.put(
        f"/api/gallery/admin/{image['id']}",
        json={"alt": "Stage PSE1", "category": "evenements"},
        headers=admin_headers,
    )
    assert updated.json()["alt"] == "Stage PSE1"
    assert updated.json()["category"] == "evenements"

    deleted = await client.delete(f"/api/gallery/admin/{image['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert not (uploads_dir / "galerie" / image["filename"]).exists()
