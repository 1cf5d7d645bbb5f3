from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, utcnow
from app.models.enums import InscriptionStatus

"""
Model Inscription.

Rôle (fonctionnel) :
- Demande d’inscription d’un participant à une formation (formulaire public).
- Porte un statut de traitement (PENDING -> ACCEPTED / REFUSED / CANCELLED) piloté par les admins.
- notified : passe à True quand le participant a été notifié d’un changement de statut.

Relations :
- Inscription -> Formation (N inscriptions pour 1 formation, suppression en cascade).

Index :
- (formation_id, status) : listes back-office filtrées + comptages du dashboard.
"""


class Inscription(Base):
    __tablename__ = "inscriptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    birthdate: Mapped[date] = mapped_column(Date, nullable=False)

    # Informations complémentaires libres (allergies, accessibilité…)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    formation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("formations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=InscriptionStatus.PENDING.value)
    notified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    formation = relationship("Formation", back_populates="inscriptions", lazy="joined")

    __table_args__ = (
        Index("ix_inscriptions_formation_status", "formation_id", "status"),
    )
