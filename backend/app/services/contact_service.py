from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import invalid_request
from app.core.settings import settings
from app.schemas.inscriptions import ContactIn, SauvetageSportifIn, SignalementIn
from app.services.email_service import EmailService
from app.services.settings_service import KEY_EMAIL_CONTACT, SettingsService

"""
Contact Service (formulaires publics relayés par email).

Rôle (fonctionnel) :
- Contact, signalement et pré-inscription Sauvetage Sportif : rien n’est persisté,
  le formulaire est transmis à l’admin (ADMIN_EMAIL) et un accusé de réception part vers l’expéditeur.
- Le message de contact vers l’admin respecte l’interrupteur notifications.emailContact.

Erreurs :
- ADMIN_EMAIL non configuré : 400 (le formulaire ne peut être acheminé nulle part).
- Échec SMTP : journalisé, sans faire échouer la requête.
"""

log = logging.getLogger("app.contact")


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%d/%m/%Y")


def _admin_email() -> str:
    if not settings.ADMIN_EMAIL:
        raise invalid_request("Adresse email de l'admin non configurée")
    return settings.ADMIN_EMAIL


class ContactService:
    def __init__(self, db: AsyncSession, mailer: EmailService) -> None:
        self.db = db
        self.mailer = mailer

    async def send_contact(self, payload: ContactIn) -> str:
        admin_email = _admin_email()

        if await SettingsService(self.db).is_enabled(KEY_EMAIL_CONTACT):
            await self.mailer.send_email(
                admin_email,
                f"Nouveau message de contact : {payload.subject}",
                "NOTIFICATION_CONTACT",
                {
                    "contact": {
                        "name": payload.name,
                        "email": str(payload.email),
                        "subject": payload.subject,
                        "message": payload.message,
                        "date": _today(),
                    }
                },
            )
        else:
            log.info("contact notification disabled by settings")

        await self.mailer.send_email(
            str(payload.email),
            "Confirmation de réception de votre message",
            "CONFIRMATION_CONTACT",
            {"name": payload.name, "subject": payload.subject},
        )
        return "Message envoyé avec succès"

    async def send_signalement(self, payload: SignalementIn) -> str:
        admin_email = _admin_email()

        await self.mailer.send_email(
            admin_email,
            f"Nouveau signalement : {payload.type}",
            "NOTIFICATION_SIGNALEMENT",
            {
                "signalement": {
                    "name": payload.name,
                    "email": str(payload.email),
                    "type": payload.type,
                    "details": payload.details,
                    "location": payload.location or "Non spécifié",
                    "date": _today(),
                }
            },
        )
        await self.mailer.send_email(
            str(payload.email),
            "Confirmation de votre signalement",
            "CONFIRMATION_SIGNALEMENT",
            {"name": payload.name, "type": payload.type},
        )
        return "Signalement envoyé avec succès"

    async def send_sauvetage_sportif(self, payload: SauvetageSportifIn) -> str:
        admin_email = _admin_email()

        await self.mailer.send_email(
            admin_email,
            "Nouvelle inscription - Sauvetage Sportif",
            "NOTIFICATION_SAUVETAGE_SPORTIF",
            {
                "inscription": {
                    "first_name": payload.first_name,
                    "last_name": payload.last_name,
                    "email": str(payload.email),
                    "phone": payload.phone,
                    "birthdate": payload.birthdate.strftime("%d/%m/%Y"),
                    "observation": payload.observation or "",
                }
            },
        )
        await self.mailer.send_email(
            str(payload.email),
            "Confirmation de votre demande d'inscription - Sauvetage Sportif",
            "CONFIRMATION_SAUVETAGE_SPORTIF",
            {"first_name": payload.first_name, "last_name": payload.last_name},
        )
        return "Inscription envoyée avec succès"
