from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AdminDep
from app.core.security import AdminContext
from app.db.session import get_db
from app.models.enums import FormationStatus, TypeFormation
from app.schemas.common import MessageOut
from app.schemas.formations import (
    CatalogueFormation,
    ExcelUploadOut,
    FormationCreate,
    FormationOut,
    FormationStatusUpdate,
    FormationUpdate,
)
from app.services.formation_service import CatalogueService, FormationService

"""
API Formations.

Rôle (fonctionnel) :
- Public : formations ouvertes (PLANNED / IN_PROGRESS) et catalogue issu du fichier Excel,
  filtrable par type et période (`recent` ou une année).
- Admin : CRUD des sessions de formation, changement de statut, dépôt du fichier Excel.
"""

router = APIRouter(prefix="/formations", tags=["formations"])


# --- Public ---
@router.get("", response_model=List[FormationOut])
async def list_public_formations(db: AsyncSession = Depends(get_db)):
    return await FormationService(db).find_public()


@router.get("/catalogue", response_model=List[CatalogueFormation])
async def list_catalogue(
    type: Optional[str] = Query(None, description="Type de formation (PSC1, PSE1…)"),
    period: Optional[str] = Query(None, description="`recent` ou une année (ex: 2025)"),
):
    return await CatalogueService().find_all(type=type, period=period)


# --- Admin ---
@router.post("/admin", response_model=FormationOut, status_code=201)
async def create_formation(
    payload: FormationCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return await FormationService(db).create(payload, actor=ctx.actor)


@router.get("/admin", response_model=List[FormationOut])
async def list_formations(
    type: Optional[TypeFormation] = Query(None),
    status: Optional[FormationStatus] = Query(None),
    upcoming: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return await FormationService(db).find_all(type=type, status=status, upcoming=upcoming)


@router.post("/admin/upload", response_model=ExcelUploadOut)
async def upload_catalogue(
    file: Optional[UploadFile] = File(None),
    ctx: AdminContext = AdminDep,
):
    formations = await CatalogueService().upload(file, actor=ctx.actor)
    return ExcelUploadOut(
        message="Fichier Excel importé avec succès",
        count=len(formations),
        formations=formations,
    )


@router.get("/admin/{formation_id}", response_model=FormationOut)
async def get_formation(
    formation_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return await FormationService(db).find_one(formation_id)


@router.put("/admin/{formation_id}", response_model=FormationOut)
async def update_formation(
    formation_id: UUID,
    payload: FormationUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return await FormationService(db).update(formation_id, payload, actor=ctx.actor)


@router.put("/admin/{formation_id}/status", response_model=FormationOut)
async def update_formation_status(
    formation_id: UUID,
    payload: FormationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return await FormationService(db).update_status(formation_id, payload.status, actor=ctx.actor)


@router.delete("/admin/{formation_id}", response_model=MessageOut)
async def delete_formation(
    formation_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    await FormationService(db).remove(formation_id, actor=ctx.actor)
    return MessageOut(message="Formation supprimée avec succès")
