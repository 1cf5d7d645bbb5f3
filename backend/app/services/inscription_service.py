from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import conflict, invalid_request, not_found
from app.core.settings import settings
from app.db.base import utcnow
from app.models.enums import InscriptionStatus
from app.models.formation import Formation
from app.models.inscription import Inscription
from app.schemas.inscriptions import InscriptionCreate, InscriptionUpdate
from app.services.email_service import EmailService
from app.services.settings_service import KEY_EMAIL_INSCRIPTION, SettingsService

"""
Inscription Service.

Rôle (fonctionnel) :
- Enregistre les inscriptions publiques en réservant une place sur la formation.
- Applique la machine à états des inscriptions (back-office) et le comptage des places associé.
- Supprime une inscription en restituant sa place si elle en occupait une.
- Notifie participant et admin par email APRÈS commit, en “best-effort”.

Comptage des places :
- Une inscription occupe exactement une place tant qu’elle est PENDING ou ACCEPTED.
- create : décrément conditionnel (`available_seats > 0`) dans la même transaction que l’INSERT.
- PENDING -> ACCEPTED : aucune variation, la place est déjà réservée.
- Passage en REFUSED / CANCELLED, ou suppression d’une inscription PENDING / ACCEPTED : incrément
  conditionnel (`available_seats < total_seats`).
- Les variations sont des UPDATE conditionnels (jamais lecture puis écriture) : sous PostgreSQL la ligne
  de la formation est verrouillée jusqu’au commit, deux créations concurrentes sur la dernière place
  donnent exactement une inscription.

Concurrence sur le statut :
- L’écriture du statut est conditionnée à l’ancien statut (`WHERE status = :old`) ; si une autre
  transition a eu lieu entre-temps, la transaction est annulée (place comprise) et l’appelant reçoit
  409 CONFLICT.

Notifications :
- Les emails partent après le commit : un échec SMTP ne remet jamais en cause l’écriture en base.
"""

log = logging.getLogger("app.inscriptions")

S = InscriptionStatus

ALLOWED_TRANSITIONS: Dict[InscriptionStatus, frozenset] = {
    S.PENDING: frozenset({S.ACCEPTED, S.REFUSED, S.CANCELLED}),
    S.ACCEPTED: frozenset({S.REFUSED, S.CANCELLED}),
    S.REFUSED: frozenset(),
    S.CANCELLED: frozenset(),
}

# Gabarit + sujet envoyés au participant selon le nouveau statut
STATUS_EMAILS: Dict[InscriptionStatus, tuple[str, str]] = {
    S.ACCEPTED: ("INSCRIPTION_ACCEPTED", "Votre inscription est confirmée"),
    S.REFUSED: ("INSCRIPTION_REFUSED", "Votre inscription n'a pas été retenue"),
    S.CANCELLED: ("INSCRIPTION_CANCELLED", "Votre inscription a été annulée"),
}


# Statuts qui occupent une place sur la formation
SEAT_HOLDING = frozenset({S.PENDING, S.ACCEPTED})


def seat_delta(old: InscriptionStatus, new: InscriptionStatus) -> int:
    """Variation de available_seats induite par une transition (-1, 0 ou +1)."""
    return int(old in SEAT_HOLDING) - int(new in SEAT_HOLDING)


def _email_context(inscription: Inscription, formation: Formation) -> Dict[str, Any]:
    return {
        "inscription": {
            "id": str(inscription.id),
            "first_name": inscription.first_name,
            "last_name": inscription.last_name,
            "email": inscription.email,
            "phone": inscription.phone,
            "birthdate": inscription.birthdate.strftime("%d/%m/%Y"),
            "message": inscription.message or "",
            "status": inscription.status,
        },
        "formation": {
            "id": str(formation.id),
            "title": formation.title,
            "date": formation.date.strftime("%d/%m/%Y %H:%M"),
            "duration": formation.duration,
            "location": formation.location,
            "available_seats": formation.available_seats,
            "total_seats": formation.total_seats,
        },
    }


class InscriptionService:
    def __init__(self, db: AsyncSession, mailer: EmailService) -> None:
        self.db = db
        self.mailer = mailer

    # ------------------------------------------------------------------
    # Lecture
    # ------------------------------------------------------------------

    async def find_all(
        self,
        *,
        formation_id: Optional[uuid.UUID] = None,
        status: Optional[InscriptionStatus] = None,
    ) -> List[Inscription]:
        stmt = select(Inscription).order_by(Inscription.created_at.desc())
        if formation_id is not None:
            stmt = stmt.where(Inscription.formation_id == formation_id)
        if status is not None:
            stmt = stmt.where(Inscription.status == status.value)
        return list((await self.db.execute(stmt)).scalars().unique().all())

    async def find_one(self, inscription_id: uuid.UUID, *, refresh: bool = False) -> Inscription:
        stmt = select(Inscription).where(Inscription.id == inscription_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        inscription = (await self.db.execute(stmt)).scalars().unique().first()
        if inscription is None:
            raise not_found("Inscription introuvable", details={"inscription_id": str(inscription_id)})
        return inscription

    # ------------------------------------------------------------------
    # Comptage des places (UPDATE conditionnels)
    # ------------------------------------------------------------------

    async def _reserve_seat(self, formation_id: uuid.UUID) -> bool:
        stmt = (
            update(Formation)
            .where(Formation.id == formation_id, Formation.available_seats > 0)
            .values(available_seats=Formation.available_seats - 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def _release_seat(self, formation_id: uuid.UUID) -> bool:
        stmt = (
            update(Formation)
            .where(Formation.id == formation_id, Formation.available_seats < Formation.total_seats)
            .values(available_seats=Formation.available_seats + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        released = result.rowcount == 1
        if not released:
            # Formation déjà pleine en places libres : on n’excède jamais total_seats
            log.warning("seat release skipped: formation already at capacity", extra={"formation_id": str(formation_id)})
        return released

    async def _reload_formation(self, formation_id: uuid.UUID) -> Formation:
        stmt = select(Formation).where(Formation.id == formation_id).execution_options(populate_existing=True)
        return (await self.db.execute(stmt)).scalars().one()

    # ------------------------------------------------------------------
    # Écritures
    # ------------------------------------------------------------------

    async def create(self, payload: InscriptionCreate) -> Inscription:
        formation = await self.db.get(Formation, payload.formation_id)
        if formation is None:
            raise not_found("Formation introuvable", details={"formation_id": str(payload.formation_id)})

        try:
            if not await self._reserve_seat(formation.id):
                raise invalid_request(
                    "Plus de places disponibles pour cette formation",
                    details={"formation_id": str(formation.id)},
                )

            inscription = Inscription(
                last_name=payload.last_name,
                first_name=payload.first_name,
                email=str(payload.email),
                phone=payload.phone,
                birthdate=payload.birthdate,
                message=payload.message,
                formation_id=formation.id,
                status=S.PENDING.value,
                notified=False,
            )
            inscription.formation = formation
            self.db.add(inscription)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        formation = await self._reload_formation(formation.id)
        log.info(
            "inscription created",
            extra={
                "inscription_id": str(inscription.id),
                "formation_id": str(formation.id),
                "new_status": S.PENDING.value,
                "seats_delta": -1,
            },
        )

        await self._notify_created(inscription, formation)
        return inscription

    def _check_transition(self, old_status: InscriptionStatus, new_status: InscriptionStatus) -> None:
        if old_status != new_status and new_status not in ALLOWED_TRANSITIONS[old_status]:
            raise invalid_request(
                f"Transition de statut non autorisée : {old_status.value} -> {new_status.value}",
                details={"from": old_status.value, "to": new_status.value},
            )

    async def _write_guarded(
        self,
        inscription: Inscription,
        old_status: InscriptionStatus,
        new_status: InscriptionStatus,
        values: Dict[str, Any],
    ) -> int:
        """
        Applique statut + champs en une écriture conditionnée à l’ancien statut, sans commit.

        Retourne la variation de places appliquée. Lève 409 si le statut a changé entre-temps :
        l’appelant annule alors toute la transaction (libération de place comprise).
        """
        delta = seat_delta(old_status, new_status)
        if delta > 0:
            await self._release_seat(inscription.formation_id)

        result = await self.db.execute(
            update(Inscription)
            .where(Inscription.id == inscription.id, Inscription.status == old_status.value)
            .values(status=new_status.value, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise conflict(
                "L'inscription a été modifiée entre-temps, veuillez recharger",
                details={"inscription_id": str(inscription.id), "expected_status": old_status.value},
            )
        return delta

    def _log_transition(
        self,
        inscription: Inscription,
        old_status: InscriptionStatus,
        new_status: InscriptionStatus,
        delta: int,
        actor: Optional[str],
    ) -> None:
        log.info(
            "inscription status changed",
            extra={
                "inscription_id": str(inscription.id),
                "formation_id": str(inscription.formation_id),
                "old_status": old_status.value,
                "new_status": new_status.value,
                "seats_delta": delta,
                "actor": actor,
            },
        )

    async def update_status(
        self,
        inscription_id: uuid.UUID,
        new_status: InscriptionStatus,
        *,
        actor: Optional[str] = None,
    ) -> Inscription:
        inscription = await self.find_one(inscription_id)
        old_status = InscriptionStatus(inscription.status)

        if old_status == new_status:
            return inscription
        self._check_transition(old_status, new_status)

        try:
            delta = await self._write_guarded(inscription, old_status, new_status, {"notified": True})
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        inscription = await self.find_one(inscription_id, refresh=True)
        self._log_transition(inscription, old_status, new_status, delta, actor)

        await self._notify_status(inscription, new_status)
        return inscription

    async def update(
        self,
        inscription_id: uuid.UUID,
        payload: InscriptionUpdate,
        *,
        actor: Optional[str] = None,
    ) -> Inscription:
        """Mise à jour partielle : statut (machine à états) et champs écrits dans une seule transaction."""
        data = payload.model_dump(exclude_unset=True)
        requested_status = data.pop("status", None)
        notified = data.pop("notified", None)

        inscription = await self.find_one(inscription_id)
        old_status = InscriptionStatus(inscription.status)
        new_status = InscriptionStatus(requested_status) if requested_status is not None else old_status
        self._check_transition(old_status, new_status)

        values: Dict[str, Any] = {
            field: str(value) if field == "email" else value
            for field, value in data.items()
            if value is not None or field == "message"
        }
        status_changed = new_status != old_status
        if status_changed:
            values["notified"] = True
        if notified is not None:
            values["notified"] = notified

        if not status_changed and not values:
            return inscription

        try:
            delta = await self._write_guarded(inscription, old_status, new_status, values)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        inscription = await self.find_one(inscription_id, refresh=True)
        if status_changed:
            self._log_transition(inscription, old_status, new_status, delta, actor)
            await self._notify_status(inscription, new_status)
        return inscription

    async def remove(self, inscription_id: uuid.UUID, *, actor: Optional[str] = None) -> None:
        inscription = await self.find_one(inscription_id)
        status = InscriptionStatus(inscription.status)
        formation_id = inscription.formation_id
        delta = 1 if status in SEAT_HOLDING else 0

        try:
            if delta:
                await self._release_seat(formation_id)

            result = await self.db.execute(
                delete(Inscription)
                .where(Inscription.id == inscription.id, Inscription.status == status.value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise conflict(
                    "L'inscription a été modifiée entre-temps, veuillez recharger",
                    details={"inscription_id": str(inscription.id)},
                )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        formation = await self._reload_formation(formation_id)
        log.info(
            "inscription deleted",
            extra={
                "inscription_id": str(inscription_id),
                "formation_id": str(formation_id),
                "old_status": status.value,
                "seats_delta": delta,
                "actor": actor,
            },
        )

        template, subject = STATUS_EMAILS[S.CANCELLED]
        await self._safe_send(inscription.email, subject, template, _email_context(inscription, formation))

    # ------------------------------------------------------------------
    # Notifications (après commit)
    # ------------------------------------------------------------------

    async def _safe_send(self, to: str, subject: str, template: str, data: Dict[str, Any]) -> bool:
        try:
            return await self.mailer.send_email(to, subject, template, data)
        except Exception:
            log.exception("notification failed", extra={"to": to, "template": template})
            return False

    async def _notify_created(self, inscription: Inscription, formation: Formation) -> None:
        context = _email_context(inscription, formation)

        await self._safe_send(
            inscription.email,
            f"Votre demande d'inscription : {formation.title}",
            "INSCRIPTION_CONFIRMATION",
            context,
        )

        try:
            notify_admin = await SettingsService(self.db).is_enabled(KEY_EMAIL_INSCRIPTION)
        except Exception:
            log.exception("settings lookup failed, admin notification skipped")
            return

        if notify_admin and settings.ADMIN_EMAIL:
            await self._safe_send(
                settings.ADMIN_EMAIL,
                f"Nouvelle inscription : {formation.title}",
                "INSCRIPTION_ADMIN_NOTIFICATION",
                context,
            )

    async def _notify_status(self, inscription: Inscription, new_status: InscriptionStatus) -> None:
        entry = STATUS_EMAILS.get(new_status)
        if entry is None:
            return
        template, subject = entry
        await self._safe_send(inscription.email, subject, template, _email_context(inscription, inscription.formation))
