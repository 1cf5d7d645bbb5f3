from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import FormationStatus, TypeFormation

"""
Schemas Formations (Pydantic).

Rôle (fonctionnel) :
- Contrat HTTP du CRUD formations (back-office) et du listing public.
- Contrat du catalogue issu de l’import Excel (enregistrements non persistés).

Notes :
- available_seats n’est jamais fourni par le client : il est dérivé de total_seats à la création
  puis maintenu par le workflow des inscriptions.
- Une date sans fuseau est interprétée en UTC.
"""


def _ensure_utc(v: Any) -> Any:
    if isinstance(v, datetime) and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class FormationCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    type: TypeFormation
    date: datetime
    duration: str = Field(..., min_length=1, max_length=100)
    total_seats: int = Field(..., ge=1, le=10000)
    price: Decimal = Field(..., ge=Decimal("0"), le=Decimal("100000"))
    location: str = Field(..., min_length=1, max_length=255)
    instructor: str = Field(..., min_length=1, max_length=255)

    @field_validator("date")
    @classmethod
    def _date_utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)

    @field_validator("title", "duration", "location", "instructor", mode="before")
    @classmethod
    def _strip_strings(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


class FormationUpdate(BaseModel):
    """Mise à jour partielle : seuls les champs fournis sont appliqués."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[TypeFormation] = None
    date: Optional[datetime] = None
    duration: Optional[str] = Field(default=None, min_length=1, max_length=100)
    total_seats: Optional[int] = Field(default=None, ge=1, le=10000)
    price: Optional[Decimal] = Field(default=None, ge=Decimal("0"), le=Decimal("100000"))
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    instructor: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[FormationStatus] = None

    @field_validator("date")
    @classmethod
    def _date_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _ensure_utc(v)


class FormationStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: FormationStatus


class FormationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    type: TypeFormation
    date: datetime
    duration: str
    total_seats: int
    available_seats: int
    price: float
    location: str
    instructor: str
    status: FormationStatus
    created_at: datetime
    updated_at: datetime


class FormationSummary(BaseModel):
    """Résumé embarqué dans les inscriptions (évite de renvoyer toute la formation)."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    type: TypeFormation
    date: datetime
    location: str


class CatalogueFormation(BaseModel):
    """Formation lue depuis le fichier Excel du catalogue (non persistée)."""
    id: str
    title: str
    type: TypeFormation
    start_date: datetime
    end_date: datetime
    description: str = ""
    duration: str
    price: str
    status: FormationStatus = FormationStatus.PLANNED


class ExcelUploadOut(BaseModel):
    message: str
    count: int
    formations: List[CatalogueFormation]
