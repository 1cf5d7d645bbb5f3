from __future__ import annotations

import logging
import uuid
from io import BytesIO
from typing import List, Optional, Tuple

from fastapi import UploadFile
from PIL import Image as PILImage
from PIL import UnidentifiedImageError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import invalid_request, not_found
from app.core.settings import settings
from app.db.base import utcnow
from app.models.enums import ImageCategory
from app.models.image import Image
from app.schemas.gallery import GalleryGroup, ImageOut, ImageUpdate
from app.services import storage

"""
Gallery Service.

Rôle (fonctionnel) :
- Upload d’images (jpeg / png / webp, 5 Mo max) redimensionnées à 1920 px de large maximum
  et recompressées (qualité 80) avant écriture sur disque.
- Galerie publique : par catégorie, regroupée (mode=all) ou 4 images au hasard (mode=random).
- CRUD back-office (la suppression efface aussi le fichier).
"""

log = logging.getLogger("app.gallery")

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")

MAX_WIDTH = 1920
QUALITY = 80
RANDOM_COUNT = 4

_FORMATS = {"JPEG": ".jpg", "PNG": ".png", "WEBP": ".webp"}


def optimize_image(data: bytes, *, max_width: int = MAX_WIDTH, quality: int = QUALITY) -> Tuple[bytes, str]:
    """
    Redimensionne (largeur > max_width) et recompresse une image.

    Renvoie (contenu, extension). Les formats autres que JPEG / PNG / WEBP sont convertis en WEBP.
    """
    try:
        with PILImage.open(BytesIO(data)) as img:
            img.load()
            fmt = img.format if img.format in _FORMATS else "WEBP"

            if img.width > max_width:
                ratio = max_width / float(img.width)
                img = img.resize((max_width, max(1, int(img.height * ratio))), PILImage.Resampling.LANCZOS)

            if fmt == "JPEG" and img.mode not in ("RGB", "L"):
                img = img.convert("RGB")

            out = BytesIO()
            if fmt == "PNG":
                img.save(out, "PNG", optimize=True)
            else:
                img.save(out, fmt, quality=quality, optimize=True)
    except (UnidentifiedImageError, OSError) as exc:
        raise invalid_request("Image invalide ou corrompue", details={"reason": str(exc)}) from exc

    return out.getvalue(), _FORMATS[fmt]


def to_out(image: Image) -> ImageOut:
    return ImageOut(
        id=image.id,
        filename=image.filename,
        alt=image.alt,
        category=ImageCategory(image.category),
        url=storage.public_url(storage.GALLERY, image.filename),
        created_at=image.created_at,
        updated_at=image.updated_at,
    )


class GalleryService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_all(self, *, category: Optional[ImageCategory] = None) -> List[Image]:
        stmt = select(Image).order_by(Image.created_at.desc())
        if category is not None:
            stmt = stmt.where(Image.category == category.value)
        return list((await self.db.execute(stmt)).scalars().all())

    async def find_grouped(self) -> List[GalleryGroup]:
        images = await self.find_all()
        groups = []
        for cat in ImageCategory:
            groups.append(GalleryGroup(category=cat, images=[to_out(i) for i in images if i.category == cat.value]))
        return groups

    async def find_random(self, *, category: Optional[ImageCategory] = None, limit: int = RANDOM_COUNT) -> List[Image]:
        stmt = select(Image).order_by(func.random()).limit(limit)
        if category is not None:
            stmt = stmt.where(Image.category == category.value)
        return list((await self.db.execute(stmt)).scalars().all())

    async def find_one(self, image_id: uuid.UUID) -> Image:
        image = await self.db.get(Image, image_id)
        if image is None:
            raise not_found("Image introuvable", details={"image_id": str(image_id)})
        return image

    async def create(
        self,
        file: Optional[UploadFile],
        *,
        alt: str,
        category: ImageCategory,
        actor: Optional[str] = None,
    ) -> Image:
        if file is None or not file.filename:
            raise invalid_request("Fichier image requis")
        if (file.content_type or "").lower() not in ALLOWED_IMAGE_TYPES:
            raise invalid_request(
                "Type de fichier non autorisé",
                details={"allowed": list(ALLOWED_IMAGE_TYPES), "received": file.content_type},
            )

        data = await storage.read_upload(file, settings.MAX_IMAGE_SIZE_MB)
        if not data:
            raise invalid_request("Fichier image vide")

        optimized, ext = optimize_image(data)
        stem = storage.sanitize_filename(file.filename).rsplit(".", 1)[0]
        filename = storage.timestamped_name(f"{stem}{ext}")
        await storage.save_bytes(storage.GALLERY, filename, optimized)

        image = Image(filename=filename, alt=alt.strip(), category=category.value)
        self.db.add(image)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            storage.delete_file(storage.GALLERY, filename)
            raise
        await self.db.refresh(image)

        log.info("image uploaded: %s (%d -> %d bytes)", filename, len(data), len(optimized), extra={"actor": actor})
        return image

    async def update(self, image_id: uuid.UUID, payload: ImageUpdate) -> Image:
        image = await self.find_one(image_id)
        if payload.alt is not None:
            image.alt = payload.alt
        if payload.category is not None:
            image.category = payload.category.value
        image.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(image)
        return image

    async def remove(self, image_id: uuid.UUID, *, actor: Optional[str] = None) -> None:
        image = await self.find_one(image_id)
        filename = image.filename
        await self.db.delete(image)
        await self.db.commit()
        storage.delete_file(storage.GALLERY, filename)
        log.info("image deleted: %s", filename, extra={"actor": actor})
