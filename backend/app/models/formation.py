from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, utcnow
from app.models.enums import FormationStatus

"""
Model Formation.

Rôle (fonctionnel) :
- Session de formation planifiée (PSC1, PSE1, BNSSA…) avec sa capacité d’accueil.
- Pivot métier : les inscriptions se rattachent à une formation (cascade delete).

Comptage des places :
- total_seats : capacité de la session.
- available_seats : places restantes. Une inscription PENDING ou ACCEPTED occupe une place, réservée
  à l’inscription et rendue quand elle est refusée, annulée ou supprimée.
- Invariant 0 <= available_seats <= total_seats garanti en base par une contrainte CHECK
  (les mises à jour applicatives sont conditionnelles, la contrainte est le dernier filet).

Index :
- (status, date) : listing public des formations à venir.
"""


class Formation(Base):
    __tablename__ = "formations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    # Date/heure de début de la session
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    # Durée libre (ex: "7h", "2 jours")
    duration: Mapped[str] = mapped_column(String(100), nullable=False)

    total_seats: Mapped[int] = mapped_column(Integer, nullable=False)
    available_seats: Mapped[int] = mapped_column(Integer, nullable=False)

    price: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    instructor: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=FormationStatus.PLANNED.value)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    inscriptions = relationship(
        "Inscription",
        back_populates="formation",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("total_seats >= 1", name="total_seats_positive"),
        CheckConstraint(
            "available_seats >= 0 AND available_seats <= total_seats",
            name="available_seats_range",
        ),
        Index("ix_formations_status_date", "status", "date"),
    )
