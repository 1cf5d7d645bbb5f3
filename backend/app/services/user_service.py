from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from fastapi import UploadFile
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import conflict, forbidden, invalid_request, not_found
from app.core.security import AdminContext, hash_password, verify_password
from app.core.settings import settings
from app.db.base import utcnow
from app.models.admin import Admin
from app.models.enums import Role
from app.schemas.users import PasswordChange, UserCreate, UserUpdate
from app.services import storage
from app.services.gallery_service import ALLOWED_IMAGE_TYPES, optimize_image

"""
User Service (administrateurs).

Rôle (fonctionnel) :
- Gestion des comptes du back-office (CRUD) et du profil de l’admin connecté (mot de passe, avatar).

Règles SUPER_ADMIN :
- Seul un SUPER_ADMIN peut créer, promouvoir, consulter ou modifier un SUPER_ADMIN.
- Un ADMIN ne voit que les comptes ADMIN.
- Le dernier SUPER_ADMIN ne peut pas être supprimé (ni rétrogradé).
- Email unique : 409 CONFLICT si déjà utilisé.
"""

log = logging.getLogger("app.users")


class UserService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get(self, user_id: uuid.UUID) -> Admin:
        admin = await self.db.get(Admin, user_id)
        if admin is None:
            raise not_found("Administrateur introuvable", details={"user_id": str(user_id)})
        return admin

    async def _email_taken(self, email: str, *, exclude_id: Optional[uuid.UUID] = None) -> bool:
        stmt = select(Admin.id).where(Admin.email == email)
        if exclude_id is not None:
            stmt = stmt.where(Admin.id != exclude_id)
        return (await self.db.execute(stmt)).first() is not None

    async def _super_admin_count(self) -> int:
        stmt = select(func.count(Admin.id)).where(Admin.role == Role.SUPER_ADMIN.value)
        return int((await self.db.execute(stmt)).scalar() or 0)

    async def find_all(self, ctx: AdminContext) -> List[Admin]:
        stmt = select(Admin).order_by(Admin.created_at.desc())
        if not ctx.is_super_admin:
            stmt = stmt.where(Admin.role == Role.ADMIN.value)
        return list((await self.db.execute(stmt)).scalars().all())

    async def find_one(self, user_id: uuid.UUID, ctx: AdminContext) -> Admin:
        admin = await self._get(user_id)
        if admin.role == Role.SUPER_ADMIN.value and not ctx.is_super_admin:
            raise forbidden("Vous n'avez pas les droits pour accéder à cet administrateur")
        return admin

    async def get_me(self, ctx: AdminContext) -> Admin:
        return await self._get(ctx.id)

    async def create(self, payload: UserCreate, ctx: AdminContext) -> Admin:
        if payload.role == Role.SUPER_ADMIN and not ctx.is_super_admin:
            raise forbidden("Seuls les super administrateurs peuvent créer d'autres super administrateurs")

        email = str(payload.email).lower()
        if await self._email_taken(email):
            raise conflict("Cet email est déjà utilisé", details={"email": email})

        admin = Admin(
            email=email,
            password_hash=hash_password(payload.password),
            last_name=payload.last_name,
            first_name=payload.first_name,
            role=payload.role.value,
        )
        self.db.add(admin)
        await self.db.commit()
        await self.db.refresh(admin)

        log.info("admin created: %s (%s)", admin.email, admin.role, extra={"actor": ctx.actor})
        return admin

    async def update(self, user_id: uuid.UUID, payload: UserUpdate, ctx: AdminContext) -> Admin:
        admin = await self._get(user_id)

        if admin.role == Role.SUPER_ADMIN.value and not ctx.is_super_admin:
            raise forbidden("Vous n'avez pas les droits pour modifier un super administrateur")
        if payload.role == Role.SUPER_ADMIN and not ctx.is_super_admin:
            raise forbidden("Seuls les super administrateurs peuvent attribuer le rôle de super administrateur")

        data = payload.model_dump(exclude_unset=True)

        if data.get("email"):
            email = str(data["email"]).lower()
            if email != admin.email and await self._email_taken(email, exclude_id=admin.id):
                raise conflict("Cet email est déjà utilisé", details={"email": email})
            admin.email = email

        new_role = data.get("role")
        if new_role is not None and new_role != Role.SUPER_ADMIN and admin.role == Role.SUPER_ADMIN.value:
            if await self._super_admin_count() <= 1:
                raise invalid_request("Impossible de rétrograder le dernier super administrateur")
        if new_role is not None:
            admin.role = Role(new_role).value

        if data.get("password"):
            admin.password_hash = hash_password(data["password"])
        for field in ("last_name", "first_name"):
            if data.get(field):
                setattr(admin, field, data[field])

        admin.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(admin)

        log.info("admin updated: %s", admin.email, extra={"actor": ctx.actor})
        return admin

    async def remove(self, user_id: uuid.UUID, ctx: AdminContext) -> None:
        admin = await self._get(user_id)

        if admin.role == Role.SUPER_ADMIN.value:
            if not ctx.is_super_admin:
                raise forbidden("Vous n'avez pas les droits pour supprimer un super administrateur")
            if await self._super_admin_count() <= 1:
                raise invalid_request("Impossible de supprimer le dernier super administrateur")

        avatar, email = admin.avatar, admin.email
        await self.db.delete(admin)
        await self.db.commit()

        if avatar:
            storage.delete_file(storage.AVATARS, avatar.rsplit("/", 1)[-1])
        log.info("admin deleted: %s", email, extra={"actor": ctx.actor})

    async def change_password(self, payload: PasswordChange, ctx: AdminContext) -> None:
        admin = await self._get(ctx.id)
        if not verify_password(payload.current_password, admin.password_hash):
            raise invalid_request("Mot de passe actuel incorrect")

        admin.password_hash = hash_password(payload.new_password)
        admin.updated_at = utcnow()
        await self.db.commit()
        log.info("password changed", extra={"actor": ctx.actor})

    async def update_avatar(self, file: Optional[UploadFile], ctx: AdminContext) -> Admin:
        if file is None or not file.filename:
            raise invalid_request("Aucun fichier fourni")
        if (file.content_type or "").lower() not in ALLOWED_IMAGE_TYPES:
            raise invalid_request("Format d'image non supporté (jpeg, png ou webp)")

        admin = await self._get(ctx.id)
        data = await storage.read_upload(file, settings.MAX_IMAGE_SIZE_MB)
        optimized, ext = optimize_image(data, max_width=512)

        filename = f"{admin.id}-{uuid.uuid4().hex[:12]}{ext}"
        await storage.save_bytes(storage.AVATARS, filename, optimized)

        previous = admin.avatar
        admin.avatar = storage.public_url(storage.AVATARS, filename)
        admin.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(admin)

        if previous and previous != admin.avatar:
            storage.delete_file(storage.AVATARS, previous.rsplit("/", 1)[-1])
        log.info("avatar updated", extra={"actor": ctx.actor})
        return admin
