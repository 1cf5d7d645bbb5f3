from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.auth import LoginIn, LoginOut
from app.services.auth_service import AuthService

"""
API Auth.

Rôle (fonctionnel) :
- Connexion des administrateurs (email + mot de passe) -> token JWT Bearer.
"""

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginOut)
async def login(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    return await AuthService(db).login(payload)
