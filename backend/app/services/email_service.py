from __future__ import annotations

import asyncio
import logging
import re
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.settings import settings
from app.models.email_template import EmailTemplate

"""
Email Service.

Rôle (fonctionnel) :
- Rend un email HTML à partir d’un gabarit nommé (ex: "INSCRIPTION_ACCEPTED") ou d’un contenu brut.
- Résolution d’un gabarit nommé :
  1) fichier Jinja2 sous app/templates/emails (TEMPLATE_FILES),
  2) sinon ligne active de la table email_templates (même `type`),
  3) sinon échec (log + False).
- Envoie via SMTP (smtplib exécuté dans un thread pour ne pas bloquer la boucle asyncio).

Contrat :
- `send_email(...)` renvoie True si l’email est parti, False sinon. Ne lève jamais :
  les notifications sont “best-effort” et ne doivent pas faire échouer une action métier.
- EMAIL_ENABLED=false : l’email est rendu puis journalisé, sans envoi (dev / tests).
"""

log = logging.getLogger("app.emails")

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates" / "emails"

# Gabarits fichiers connus (nom logique -> fichier)
TEMPLATE_FILES: Dict[str, str] = {
    "INSCRIPTION_CONFIRMATION": "inscription-confirmation.html",
    "INSCRIPTION_ADMIN_NOTIFICATION": "notification-inscription.html",
    "INSCRIPTION_ACCEPTED": "inscription-accepted.html",
    "INSCRIPTION_REFUSED": "inscription-refused.html",
    "INSCRIPTION_CANCELLED": "inscription-cancelled.html",
    "CONFIRMATION_CONTACT": "confirmation-contact.html",
    "NOTIFICATION_CONTACT": "notification-contact.html",
    "CONFIRMATION_SIGNALEMENT": "confirmation-signalement.html",
    "NOTIFICATION_SIGNALEMENT": "notification-signalement.html",
    "CONFIRMATION_SAUVETAGE_SPORTIF": "confirmation-sauvetage-sportif.html",
    "NOTIFICATION_SAUVETAGE_SPORTIF": "notification-sauvetage-sportif.html",
}

# Un nom de gabarit est un identifiant en majuscules ; tout le reste est traité comme contenu brut
_TEMPLATE_NAME = re.compile(r"^[A-Z][A-Z0-9_]*$")

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"], default_for_string=True),
)


@dataclass
class RenderedEmail:
    subject: str
    html: str


class EmailService:
    """
    Service d’envoi d’emails.

    `db` est optionnelle : elle n’est utilisée que pour le repli sur les gabarits stockés en base.
    """

    def __init__(self, db: Optional[AsyncSession] = None) -> None:
        self.db = db

    async def render(self, subject: str, template: str, data: Optional[Dict[str, Any]] = None) -> Optional[RenderedEmail]:
        """Rend (sujet, HTML). Renvoie None si le gabarit nommé est introuvable ou inactif."""
        context = dict(data or {})

        if not _TEMPLATE_NAME.match(template):
            # Contenu fourni directement par l’appelant
            return RenderedEmail(subject=subject, html=template)

        filename = TEMPLATE_FILES.get(template)
        if filename:
            try:
                return RenderedEmail(subject=subject, html=_env.get_template(filename).render(**context))
            except TemplateNotFound:
                log.warning("template file missing, falling back to database", extra={"template": template})

        db_template = await self._load_db_template(template)
        if db_template is None:
            log.error("email template not found or inactive", extra={"template": template})
            return None

        html = _env.from_string(db_template.content).render(**context)
        return RenderedEmail(subject=subject or db_template.subject, html=html)

    async def _load_db_template(self, name: str) -> Optional[EmailTemplate]:
        if self.db is None:
            return None
        stmt = select(EmailTemplate).where(EmailTemplate.type == name, EmailTemplate.active.is_(True))
        return (await self.db.execute(stmt)).scalars().first()

    async def send_email(
        self,
        to: str,
        subject: str,
        template: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        if not to:
            log.warning("email skipped: empty recipient", extra={"template": template})
            return False

        try:
            rendered = await self.render(subject, template, data)
            if rendered is None:
                return False

            if not settings.EMAIL_ENABLED:
                log.info("email disabled, not sent: %s", rendered.subject, extra={"to": to, "template": template})
                return False

            msg = _build_message(to, rendered)
            await asyncio.to_thread(_deliver, msg)
        except Exception:
            log.exception("email delivery failed", extra={"to": to, "template": template})
            return False

        log.info("email sent: %s", rendered.subject, extra={"to": to, "template": template})
        return True


def _sender() -> str:
    return settings.SMTP_FROM or settings.SMTP_USER or "no-reply@localhost"


def _build_message(to: str, rendered: RenderedEmail) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = rendered.subject
    msg["From"] = _sender()
    msg["To"] = to
    msg.set_content("Ce message est au format HTML.")
    msg.add_alternative(rendered.html, subtype="html")
    return msg


def _smtp_connect() -> Tuple[smtplib.SMTP, bool]:
    if settings.SMTP_USE_SSL:
        return smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10), False
    return smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10), settings.SMTP_USE_TLS


def _deliver(msg: EmailMessage) -> None:
    """Envoi SMTP synchrone (appelé via asyncio.to_thread)."""
    smtp, starttls = _smtp_connect()
    with smtp:
        if starttls:
            smtp.starttls()
        if settings.SMTP_USER:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD or "")
        smtp.send_message(msg)
