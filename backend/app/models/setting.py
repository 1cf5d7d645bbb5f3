from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, utcnow

"""
Model Setting.

Rôle (fonctionnel) :
- Stockage clé/valeur “à plat” des paramètres du site (coordonnées, réseaux sociaux, notifications).
- Les clés sont hiérarchisées par un point (ex: "contact.email", "notifications.emailInscription").
- Sert aussi de journal technique pour les opérations de maintenance (lastBackup, lastRestore, lastReset).
"""


class Setting(Base):
    __tablename__ = "settings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
