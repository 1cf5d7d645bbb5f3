from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AdminDep, SuperAdminDep
from app.core.security import AdminContext
from app.db.session import get_db
from app.schemas.settings import SettingsAdminOut, SettingsOut, SettingsUpdate
from app.services.settings_service import SettingsService

"""
API Paramètres du site.

Rôle (fonctionnel) :
- Public : coordonnées, réseaux sociaux, préférences de notification (valeurs par défaut si absentes).
- Admin : lecture enrichie (clés techniques : dernière sauvegarde, restauration…).
- SUPER_ADMIN : mise à jour partielle.
"""

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=SettingsOut)
async def get_settings(db: AsyncSession = Depends(get_db)):
    return await SettingsService(db).get_public()


@router.get("/admin", response_model=SettingsAdminOut)
async def get_settings_admin(db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await SettingsService(db).get_admin()


@router.post("/admin", response_model=SettingsOut)
async def update_settings(
    payload: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = SuperAdminDep,
):
    return await SettingsService(db).update(payload)
