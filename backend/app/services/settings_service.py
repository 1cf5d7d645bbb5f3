from __future__ import annotations

from typing import Dict, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.setting import Setting
from app.schemas.settings import (
    ContactSettings,
    NotificationSettings,
    SettingsAdminOut,
    SettingsOut,
    SettingsUpdate,
    SocialSettings,
)

"""
Settings Service.

Rôle (fonctionnel) :
- Convertit le stockage clé/valeur “à plat” (table settings) en vue structurée (SettingsOut) et inversement.
- Fournit les interrupteurs de notification utilisés par les autres services
  (ex: notifications.emailInscription avant d’avertir l’admin d’une nouvelle inscription).

Clés connues (et valeurs par défaut) :
- contact.email / contact.phone / contact.address : ""
- social.facebook / social.instagram : ""
- notifications.emailInscription / notifications.emailContact : "true"
Toute autre clé (lastBackup, lastRestore, lastReset…) est exposée côté admin dans `system`.
"""

KEY_EMAIL_INSCRIPTION = "notifications.emailInscription"
KEY_EMAIL_CONTACT = "notifications.emailContact"

DEFAULTS: Dict[str, str] = {
    "contact.email": "",
    "contact.phone": "",
    "contact.address": "",
    "social.facebook": "",
    "social.instagram": "",
    KEY_EMAIL_INSCRIPTION: "true",
    KEY_EMAIL_CONTACT: "true",
}


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() == "true"


def _structure(values: Mapping[str, str]) -> SettingsOut:
    def get(key: str) -> str:
        return values.get(key, DEFAULTS[key])

    return SettingsOut(
        contact=ContactSettings(
            email=get("contact.email"),
            phone=get("contact.phone"),
            address=get("contact.address"),
        ),
        social=SocialSettings(
            facebook=get("social.facebook"),
            instagram=get("social.instagram"),
        ),
        notifications=NotificationSettings(
            email_inscription=_as_bool(get(KEY_EMAIL_INSCRIPTION)),
            email_contact=_as_bool(get(KEY_EMAIL_CONTACT)),
        ),
    )


def flatten_settings(payload: SettingsUpdate) -> Dict[str, str]:
    """Convertit une mise à jour structurée en couples clé/valeur (seuls les champs fournis)."""
    flat: Dict[str, str] = {}

    if payload.contact is not None:
        for field, value in payload.contact.model_dump(exclude_unset=True).items():
            if value is not None:
                flat[f"contact.{field}"] = str(value)

    if payload.social is not None:
        for field, value in payload.social.model_dump(exclude_unset=True).items():
            if value is not None:
                flat[f"social.{field}"] = str(value)

    if payload.notifications is not None:
        n = payload.notifications
        if n.email_inscription is not None:
            flat[KEY_EMAIL_INSCRIPTION] = "true" if n.email_inscription else "false"
        if n.email_contact is not None:
            flat[KEY_EMAIL_CONTACT] = "true" if n.email_contact else "false"

    return flat


class SettingsService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _all(self) -> Dict[str, str]:
        rows = (await self.db.execute(select(Setting))).scalars().all()
        return {s.key: s.value for s in rows}

    async def get_value(self, key: str, default: str | None = None) -> str | None:
        row = (await self.db.execute(select(Setting).where(Setting.key == key))).scalars().first()
        if row is not None:
            return row.value
        return DEFAULTS.get(key, default)

    async def is_enabled(self, key: str) -> bool:
        return _as_bool(await self.get_value(key, "false") or "false")

    async def get_public(self) -> SettingsOut:
        return _structure(await self._all())

    async def get_admin(self) -> SettingsAdminOut:
        values = await self._all()
        base = _structure(values)
        system = {k: v for k, v in values.items() if k not in DEFAULTS}
        return SettingsAdminOut(**base.model_dump(), system=system)

    async def upsert_many(self, values: Mapping[str, str], *, commit: bool = True) -> None:
        """Crée ou met à jour chaque clé. `commit=False` pour l’inclure dans une transaction appelante."""
        if not values:
            return
        keys: Iterable[str] = list(values.keys())
        existing = {
            s.key: s
            for s in (await self.db.execute(select(Setting).where(Setting.key.in_(keys)))).scalars().all()
        }
        for key, value in values.items():
            row = existing.get(key)
            if row is None:
                self.db.add(Setting(key=key, value=value))
            else:
                row.value = value
        if commit:
            await self.db.commit()

    async def update(self, payload: SettingsUpdate) -> SettingsOut:
        await self.upsert_many(flatten_settings(payload))
        return await self.get_public()
