from __future__ import annotations

import logging
import uuid

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import forbidden, unauthorized
from app.core.security import AdminContext, decode_access_token, extract_bearer_token
from app.db.session import get_db
from app.models.admin import Admin
from app.models.enums import Role
from app.services.email_service import EmailService

"""
Dépendances API.

Rôle (fonctionnel) :
- Centralise les dépendances réutilisables sur les routes.
- Authentification : `Authorization: Bearer <jwt>` -> AdminContext (rôle relu en base, un compte
  supprimé ou rétrogradé perd ses droits immédiatement).
- Autorisation : `require_roles(...)` par route (403 si rôle insuffisant).
- Emails : `get_mailer` fournit l’EmailService (surchargé dans les tests).
"""

log = logging.getLogger("app.auth")


async def get_current_admin(request: Request, db: AsyncSession = Depends(get_db)) -> AdminContext:
    token = extract_bearer_token(request)
    if not token:
        raise unauthorized()

    payload = decode_access_token(token)
    try:
        admin_id = uuid.UUID(str(payload["sub"]))
    except ValueError as exc:
        raise unauthorized() from exc

    admin = await db.get(Admin, admin_id)
    if admin is None:
        log.warning("token for unknown admin", extra={"actor": payload.get("email")})
        raise unauthorized()

    ctx = AdminContext(id=admin.id, email=admin.email, role=Role(admin.role))
    request.state.actor = ctx.actor
    return ctx


def require_roles(*roles: Role):
    """Fabrique une dépendance qui exige l’un des rôles donnés."""
    allowed = set(roles)

    async def _guard(ctx: AdminContext = Depends(get_current_admin)) -> AdminContext:
        if ctx.role not in allowed:
            raise forbidden()
        return ctx

    return _guard


async def get_mailer(db: AsyncSession = Depends(get_db)) -> EmailService:
    return EmailService(db)


# Dépendances prêtes à l’emploi
AdminDep = Depends(require_roles(Role.ADMIN, Role.SUPER_ADMIN))
SuperAdminDep = Depends(require_roles(Role.SUPER_ADMIN))
