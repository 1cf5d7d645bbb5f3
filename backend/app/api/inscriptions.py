from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AdminDep, get_mailer
from app.core.security import AdminContext
from app.db.session import get_db
from app.models.enums import InscriptionStatus
from app.schemas.common import MessageOut
from app.schemas.inscriptions import (
    ContactIn,
    InscriptionCreate,
    InscriptionOut,
    InscriptionStatusUpdate,
    InscriptionUpdate,
    SauvetageSportifIn,
    SignalementIn,
)
from app.services.contact_service import ContactService
from app.services.email_service import EmailService
from app.services.inscription_service import InscriptionService

"""
API Inscriptions.

Rôle (fonctionnel) :
- Public : inscription à une formation (réserve une place), formulaires de contact,
  de signalement et de pré-inscription au sauvetage sportif (emails uniquement, rien en base).
- Admin : listing filtrable, détail, mise à jour, changement de statut, suppression.

Notes :
- Les règles de places / transitions sont portées par InscriptionService ; la route ne fait
  que traduire HTTP <-> service.
- Les emails partent après le commit : un échec SMTP ne fait jamais échouer la requête.
"""

router = APIRouter(prefix="/inscriptions", tags=["inscriptions"])


def _service(db: AsyncSession, mailer: EmailService) -> InscriptionService:
    return InscriptionService(db, mailer)


# --- Public ---
@router.post("", response_model=InscriptionOut, status_code=201)
async def create_inscription(
    payload: InscriptionCreate,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
):
    return await _service(db, mailer).create(payload)


@router.post("/contact", response_model=MessageOut)
async def send_contact(
    payload: ContactIn,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
):
    return MessageOut(message=await ContactService(db, mailer).send_contact(payload))


@router.post("/signalement", response_model=MessageOut)
async def send_signalement(
    payload: SignalementIn,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
):
    return MessageOut(message=await ContactService(db, mailer).send_signalement(payload))


@router.post("/sauvetage-sportif", response_model=MessageOut)
async def send_sauvetage_sportif(
    payload: SauvetageSportifIn,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
):
    return MessageOut(message=await ContactService(db, mailer).send_sauvetage_sportif(payload))


# --- Admin ---
@router.get("/admin", response_model=List[InscriptionOut])
async def list_inscriptions(
    formation_id: Optional[UUID] = Query(None),
    status: Optional[InscriptionStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
    ctx: AdminContext = AdminDep,
):
    return await _service(db, mailer).find_all(formation_id=formation_id, status=status)


@router.get("/admin/{inscription_id}", response_model=InscriptionOut)
async def get_inscription(
    inscription_id: UUID,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
    ctx: AdminContext = AdminDep,
):
    return await _service(db, mailer).find_one(inscription_id)


@router.put("/admin/{inscription_id}", response_model=InscriptionOut)
async def update_inscription(
    inscription_id: UUID,
    payload: InscriptionUpdate,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
    ctx: AdminContext = AdminDep,
):
    return await _service(db, mailer).update(inscription_id, payload, actor=ctx.actor)


@router.put("/admin/{inscription_id}/status", response_model=InscriptionOut)
async def update_inscription_status(
    inscription_id: UUID,
    payload: InscriptionStatusUpdate,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
    ctx: AdminContext = AdminDep,
):
    return await _service(db, mailer).update_status(inscription_id, payload.status, actor=ctx.actor)


@router.delete("/admin/{inscription_id}", response_model=MessageOut)
async def delete_inscription(
    inscription_id: UUID,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
    ctx: AdminContext = AdminDep,
):
    await _service(db, mailer).remove(inscription_id, actor=ctx.actor)
    return MessageOut(message="Inscription supprimée avec succès")
