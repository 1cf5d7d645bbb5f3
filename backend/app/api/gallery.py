from __future__ import annotations

from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AdminDep
from app.core.security import AdminContext
from app.db.session import get_db
from app.models.enums import ImageCategory
from app.schemas.common import MessageOut
from app.schemas.gallery import GalleryGroup, ImageOut, ImageUpdate
from app.services.gallery_service import GalleryService, to_out

"""
API Galerie.

Rôle (fonctionnel) :
- Public :
  - mode=all (défaut) : images groupées par catégorie, ou la liste d’une catégorie si `category` est fourni
  - mode=random : quelques images tirées au hasard (bandeau de la page d’accueil)
- Admin : dépôt (image redimensionnée + recompressée), détail, mise à jour, suppression.
"""

router = APIRouter(prefix="/gallery", tags=["gallery"])


@router.get("", response_model=Union[List[GalleryGroup], List[ImageOut]])
async def list_gallery(
    category: Optional[ImageCategory] = Query(None),
    mode: str = Query("all", pattern="^(all|random)$"),
    db: AsyncSession = Depends(get_db),
):
    service = GalleryService(db)
    if mode == "random":
        return [to_out(i) for i in await service.find_random(category=category)]
    if category is not None:
        return [to_out(i) for i in await service.find_all(category=category)]
    return await service.find_grouped()


@router.post("/admin", response_model=ImageOut, status_code=201)
async def upload_image(
    file: Optional[UploadFile] = File(None),
    alt: str = Form(...),
    category: ImageCategory = Form(...),
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    image = await GalleryService(db).create(file, alt=alt, category=category, actor=ctx.actor)
    return to_out(image)


@router.get("/admin", response_model=List[ImageOut])
async def list_images(
    category: Optional[ImageCategory] = Query(None),
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return [to_out(i) for i in await GalleryService(db).find_all(category=category)]


@router.get("/admin/{image_id}", response_model=ImageOut)
async def get_image(image_id: UUID, db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return to_out(await GalleryService(db).find_one(image_id))


@router.put("/admin/{image_id}", response_model=ImageOut)
async def update_image(
    image_id: UUID,
    payload: ImageUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return to_out(await GalleryService(db).update(image_id, payload))


@router.delete("/admin/{image_id}", response_model=MessageOut)
async def delete_image(image_id: UUID, db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    await GalleryService(db).remove(image_id, actor=ctx.actor)
    return MessageOut(message="Image supprimée avec succès")
