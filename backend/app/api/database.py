from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import SuperAdminDep
from app.core.security import AdminContext
from app.db.session import get_db
from app.schemas.common import MessageOut
from app.schemas.database import DatabaseBackup, DatabaseStatsOut
from app.services.database_service import DatabaseService

"""
API Base de données (maintenance).

Rôle (fonctionnel) :
- Statistiques, export JSON (fichier téléchargeable), import d’une sauvegarde, réinitialisation.
- Réservé aux SUPER_ADMIN : ces opérations touchent l’ensemble des données.
"""

router = APIRouter(prefix="/admin/database", tags=["database"])


@router.get("/stats", response_model=DatabaseStatsOut)
async def database_stats(db: AsyncSession = Depends(get_db), ctx: AdminContext = SuperAdminDep):
    return await DatabaseService(db).stats()


@router.post("/export")
async def export_database(db: AsyncSession = Depends(get_db), ctx: AdminContext = SuperAdminDep):
    backup = await DatabaseService(db).export(actor=ctx.actor)
    stamp = (backup.metadata.export_date or "")[:10]
    return JSONResponse(
        content=jsonable_encoder(backup),
        headers={"Content-Disposition": f'attachment; filename="aloha-backup-{stamp}.json"'},
    )


@router.post("/import", response_model=Dict[str, int])
async def import_database(
    payload: DatabaseBackup,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = SuperAdminDep,
):
    return await DatabaseService(db).import_backup(payload, actor=ctx.actor)


@router.post("/reset", response_model=MessageOut)
async def reset_database(db: AsyncSession = Depends(get_db), ctx: AdminContext = SuperAdminDep):
    await DatabaseService(db).reset(actor=ctx.actor)
    return MessageOut(message="Base de données réinitialisée avec succès")
