from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.enums import InscriptionStatus
from app.schemas.formations import FormationSummary

"""
Schemas Inscriptions (Pydantic).

Rôle (fonctionnel) :
- Contrat HTTP du formulaire public d’inscription et des actions back-office
  (changement de statut, mise à jour partielle).
- Contrats des formulaires publics annexes (contact, signalement, sauvetage sportif) :
  ils ne sont pas persistés, uniquement relayés par email.

Validation :
- extra="forbid" sur les entrées (refuse les champs inconnus).
- email validé (EmailStr), champs texte “strippés”, date de naissance dans le passé.
"""

_PHONE_PATTERN = r"^[0-9+().\s-]{6,30}$"


def _past_date(v: Optional[date]) -> Optional[date]:
    if v is not None and v >= date.today():
        raise ValueError("birthdate doit être dans le passé")
    return v


class _StripMixin(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


class InscriptionCreate(_StripMixin):
    model_config = ConfigDict(extra="forbid")

    formation_id: UUID
    last_name: str = Field(..., min_length=1, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=_PHONE_PATTERN)
    birthdate: date
    message: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("birthdate")
    @classmethod
    def _birthdate_past(cls, v: date) -> date:
        return _past_date(v)


class InscriptionStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: InscriptionStatus


class InscriptionUpdate(_StripMixin):
    """
    Mise à jour partielle par un admin.

    Si `status` est fourni, il passe par la machine à états (comptage des places inclus),
    dans la même transaction que les autres champs.
    """
    model_config = ConfigDict(extra="forbid")

    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, pattern=_PHONE_PATTERN)
    birthdate: Optional[date] = None
    message: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[InscriptionStatus] = None
    notified: Optional[bool] = None

    @field_validator("birthdate")
    @classmethod
    def _birthdate_past(cls, v: Optional[date]) -> Optional[date]:
        return _past_date(v)


class InscriptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    last_name: str
    first_name: str
    email: str
    phone: str
    birthdate: date
    message: Optional[str] = None
    formation_id: UUID
    status: InscriptionStatus
    notified: bool
    created_at: datetime
    updated_at: datetime
    formation: Optional[FormationSummary] = None


# --- Formulaires publics relayés par email ---


class ContactIn(_StripMixin):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)


class SignalementIn(_StripMixin):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    type: str = Field(..., min_length=1, max_length=100)
    details: str = Field(..., min_length=1, max_length=5000)
    location: Optional[str] = Field(default=None, max_length=255)


class SauvetageSportifIn(_StripMixin):
    model_config = ConfigDict(extra="forbid")

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=_PHONE_PATTERN)
    birthdate: date
    observation: Optional[str] = Field(default=None, max_length=2000)
