from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AdminDep, SuperAdminDep
from app.core.security import AdminContext
from app.db.session import get_db
from app.schemas.common import MessageOut
from app.schemas.users import PasswordChange, UserCreate, UserOut, UserUpdate
from app.services.user_service import UserService

"""
API Utilisateurs (comptes administrateurs).

Rôle (fonctionnel) :
- Profil courant : lecture, changement de mot de passe, avatar.
- Listing / détail : tout admin (un ADMIN ne voit pas les SUPER_ADMIN).
- Création / modification / suppression : SUPER_ADMIN uniquement.
"""

router = APIRouter(prefix="/admin/users", tags=["users"])


# --- Profil courant (avant /{user_id}) ---
@router.get("/me", response_model=UserOut)
async def get_me(db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await UserService(db).get_me(ctx)


@router.put("/profile/password", response_model=MessageOut)
async def change_password(
    payload: PasswordChange,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    await UserService(db).change_password(payload, ctx)
    return MessageOut(message="Mot de passe modifié avec succès")


@router.put("/profile/avatar", response_model=UserOut)
async def update_avatar(
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return await UserService(db).update_avatar(file, ctx)


# --- Gestion des comptes ---
@router.get("", response_model=List[UserOut])
async def list_users(db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await UserService(db).find_all(ctx)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await UserService(db).find_one(user_id, ctx)


@router.post("", response_model=UserOut, status_code=201)
async def create_user(payload: UserCreate, db: AsyncSession = Depends(get_db), ctx: AdminContext = SuperAdminDep):
    return await UserService(db).create(payload, ctx)


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = SuperAdminDep,
):
    return await UserService(db).update(user_id, payload, ctx)


@router.delete("/{user_id}", response_model=MessageOut)
async def delete_user(user_id: UUID, db: AsyncSession = Depends(get_db), ctx: AdminContext = SuperAdminDep):
    await UserService(db).remove(user_id, ctx)
    return MessageOut(message="Utilisateur supprimé avec succès")
