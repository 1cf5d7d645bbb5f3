from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import unauthorized
from app.core.security import create_access_token, verify_password
from app.models.admin import Admin
from app.schemas.auth import AuthUserOut, LoginIn, LoginOut

log = logging.getLogger("app.auth")


class AuthService:
    """Authentification des administrateurs (email + mot de passe -> JWT)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def login(self, payload: LoginIn) -> LoginOut:
        email = str(payload.email).lower()
        admin = (await self.db.execute(select(Admin).where(Admin.email == email))).scalars().first()

        # Même message que l’email existe ou non (pas d’énumération de comptes)
        if admin is None or not verify_password(payload.password, admin.password_hash):
            log.warning("login failed", extra={"actor": email})
            raise unauthorized("Identifiants invalides")

        token = create_access_token({"sub": str(admin.id), "email": admin.email, "role": admin.role})
        log.info("login succeeded", extra={"actor": admin.email})
        return LoginOut(access_token=token, user=AuthUserOut.model_validate(admin))
