from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import UploadFile
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import invalid_request, not_found
from app.core.settings import settings
from app.db.base import utcnow
from app.models.enums import FormationStatus, TypeFormation
from app.models.formation import Formation
from app.schemas.formations import CatalogueFormation, FormationCreate, FormationUpdate
from app.services import storage
from app.services.excel_import import filter_catalogue, parse_workbook

"""
Formation Service.

Rôle (fonctionnel) :
- CRUD des sessions de formation (back-office) et listing public des sessions ouvertes.
- Gestion du catalogue Excel : dépôt du fichier récapitulatif puis lecture filtrée pour le site public.

Règles :
- Création : available_seats = total_seats, statut PLANNED.
- Modification de total_seats : available_seats est décalé du même écart, dans un UPDATE conditionnel
  (refusé si des places déjà réservées rendraient available_seats négatif).
- Suppression : les inscriptions de la formation sont supprimées en cascade (FK ON DELETE CASCADE).
"""

log = logging.getLogger("app.formations")

PUBLIC_STATUSES = (FormationStatus.PLANNED.value, FormationStatus.IN_PROGRESS.value)

CATALOGUE_BASENAME = "catalogue-formations"
_EXCEL_EXTENSIONS = (".xlsx", ".xls")


class FormationService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_all(
        self,
        *,
        type: Optional[TypeFormation] = None,
        status: Optional[FormationStatus] = None,
        upcoming: bool = False,
    ) -> List[Formation]:
        stmt = select(Formation).order_by(Formation.date.asc())
        if type is not None:
            stmt = stmt.where(Formation.type == type.value)
        if status is not None:
            stmt = stmt.where(Formation.status == status.value)
        if upcoming:
            stmt = stmt.where(Formation.date >= datetime.now(timezone.utc))
        return list((await self.db.execute(stmt)).scalars().all())

    async def find_public(self) -> List[Formation]:
        stmt = select(Formation).where(Formation.status.in_(PUBLIC_STATUSES)).order_by(Formation.date.asc())
        return list((await self.db.execute(stmt)).scalars().all())

    async def find_one(self, formation_id: uuid.UUID, *, refresh: bool = False) -> Formation:
        stmt = select(Formation).where(Formation.id == formation_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        formation = (await self.db.execute(stmt)).scalars().first()
        if formation is None:
            raise not_found("Formation introuvable", details={"formation_id": str(formation_id)})
        return formation

    async def create(self, payload: FormationCreate, *, actor: Optional[str] = None) -> Formation:
        formation = Formation(
            title=payload.title,
            type=payload.type.value,
            date=payload.date,
            duration=payload.duration,
            total_seats=payload.total_seats,
            available_seats=payload.total_seats,
            price=payload.price,
            location=payload.location,
            instructor=payload.instructor,
            status=FormationStatus.PLANNED.value,
        )
        self.db.add(formation)
        await self.db.commit()
        await self.db.refresh(formation)

        log.info("formation created", extra={"formation_id": str(formation.id), "actor": actor})
        return formation

    async def update(self, formation_id: uuid.UUID, payload: FormationUpdate, *, actor: Optional[str] = None) -> Formation:
        formation = await self.find_one(formation_id)
        data = payload.model_dump(exclude_unset=True)
        new_total = data.pop("total_seats", None)

        try:
            if new_total is not None and new_total != formation.total_seats:
                shift = Formation.available_seats + (new_total - Formation.total_seats)
                result = await self.db.execute(
                    update(Formation)
                    .where(Formation.id == formation.id, shift >= 0)
                    .values(total_seats=new_total, available_seats=shift, updated_at=utcnow())
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise invalid_request(
                        "Le nombre total de places est inférieur aux places déjà réservées",
                        details={"formation_id": str(formation.id), "total_seats": new_total},
                    )

            for field, value in data.items():
                if value is None:
                    continue
                if field in ("type", "status"):
                    value = value.value
                setattr(formation, field, value)
            formation.updated_at = utcnow()

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        log.info("formation updated", extra={"formation_id": str(formation.id), "actor": actor})
        return await self.find_one(formation_id, refresh=True)

    async def update_status(self, formation_id: uuid.UUID, status: FormationStatus, *, actor: Optional[str] = None) -> Formation:
        formation = await self.find_one(formation_id)
        old = formation.status
        formation.status = status.value
        formation.updated_at = utcnow()
        await self.db.commit()

        log.info(
            "formation status changed",
            extra={"formation_id": str(formation.id), "old_status": old, "new_status": status.value, "actor": actor},
        )
        return await self.find_one(formation_id, refresh=True)

    async def remove(self, formation_id: uuid.UUID, *, actor: Optional[str] = None) -> None:
        formation = await self.find_one(formation_id)
        await self.db.delete(formation)
        await self.db.commit()
        log.info("formation deleted", extra={"formation_id": str(formation_id), "actor": actor})


# ----------------------------------------------------------------------
# Catalogue Excel (fichier unique sous UPLOADS_DIR/excel)
# ----------------------------------------------------------------------


def _is_excel(file: UploadFile) -> bool:
    content_type = (file.content_type or "").lower()
    name = (file.filename or "").lower()
    return "spreadsheetml" in content_type or "excel" in content_type or name.endswith(_EXCEL_EXTENSIONS)


def _stored_catalogue() -> Optional[str]:
    folder = storage.uploads_root() / storage.EXCEL
    for ext in _EXCEL_EXTENSIONS:
        candidate = folder / f"{CATALOGUE_BASENAME}{ext}"
        if candidate.exists():
            return candidate.name
    return None


class CatalogueService:
    """Dépôt et lecture du fichier Excel récapitulatif des formations."""

    async def upload(self, file: Optional[UploadFile], *, actor: Optional[str] = None) -> List[CatalogueFormation]:
        if file is None or not file.filename:
            raise invalid_request("Aucun fichier fourni")
        if not _is_excel(file):
            raise invalid_request("Le fichier doit être au format Excel (.xlsx ou .xls)")

        data = await storage.read_upload(file, settings.MAX_DOCUMENT_SIZE_MB)
        ext = ".xls" if file.filename.lower().endswith(".xls") else ".xlsx"
        filename = f"{CATALOGUE_BASENAME}{ext}"

        # Parse avant écriture : un fichier illisible ne remplace jamais le catalogue en place
        formations = parse_workbook(data, filename)

        for other in _EXCEL_EXTENSIONS:
            if other != ext:
                (storage.uploads_root() / storage.EXCEL / f"{CATALOGUE_BASENAME}{other}").unlink(missing_ok=True)
        await storage.save_bytes(storage.EXCEL, filename, data)

        log.info("catalogue uploaded: %d formations", len(formations), extra={"actor": actor})
        return formations

    async def load(self) -> List[CatalogueFormation]:
        filename = _stored_catalogue()
        if filename is None:
            return []
        data = await storage.read_bytes(storage.uploads_root() / storage.EXCEL / filename)
        return parse_workbook(data, filename)

    async def find_all(self, *, type: Optional[str] = None, period: Optional[str] = None) -> List[CatalogueFormation]:
        return filter_catalogue(await self.load(), type=type, period=period)
