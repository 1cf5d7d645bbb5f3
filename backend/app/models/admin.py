from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, utcnow
from app.models.enums import Role

"""
Model Admin.

Rôle (fonctionnel) :
- Compte d’accès au back-office (ADMIN ou SUPER_ADMIN).
- Le mot de passe n’est jamais stocké en clair (hash bcrypt, cf. app.core.security).

Règles portées par le service (app.services.user_service) :
- email unique (contrainte DB + contrôle applicatif -> 409).
- seul un SUPER_ADMIN peut créer / promouvoir / modifier un SUPER_ADMIN.
- le dernier SUPER_ADMIN ne peut pas être supprimé.
"""


class Admin(Base):
    __tablename__ = "admins"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)

    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.ADMIN.value, index=True)

    # Chemin public de l’avatar (ex: /uploads/avatars/xxx.png)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
