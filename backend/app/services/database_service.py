from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import invalid_request
from app.db.base import Base
from app.models.admin import Admin
from app.models.document import Document
from app.models.email_template import EmailTemplate
from app.models.enums import Role
from app.models.formation import Formation
from app.models.image import Image
from app.models.inscription import Inscription
from app.models.news import News
from app.models.setting import Setting
from app.schemas.database import BackupMetadata, DatabaseBackup, DatabaseStatsOut
from app.services.settings_service import SettingsService

"""
Database Service (maintenance SUPER_ADMIN).

Rôle (fonctionnel) :
- Export : sauvegarde JSON de toutes les tables (les comptes admins sans hash de mot de passe),
  puis horodatage `lastBackup`.
- Import : dans UNE transaction, vide puis restaure toutes les tables sauf les admins
  (un import ne peut ni créer ni écraser de comptes), puis horodatage `lastRestore`.
- Reset : supprime tout sauf les comptes SUPER_ADMIN, puis horodatage `lastReset`.
- Stats : volumes par table + dates des dernières opérations.

Ordre des tables :
- RESTORE_ORDER respecte les clés étrangères (formations avant inscriptions) ; la purge se fait
  dans l’ordre inverse.
"""

log = logging.getLogger("app.database")

BACKUP_VERSION = "1.0"

KEY_LAST_BACKUP = "lastBackup"
KEY_LAST_RESTORE = "lastRestore"
KEY_LAST_RESET = "lastReset"

# Tables restaurées par un import (clé JSON -> modèle), dans l’ordre des dépendances
RESTORE_ORDER: List[tuple[str, Type[Base]]] = [
    ("settings", Setting),
    ("formations", Formation),
    ("inscriptions", Inscription),
    ("documents", Document),
    ("images", Image),
    ("news", News),
    ("email_templates", EmailTemplate),
]

_ADMIN_EXPORT_EXCLUDE = {"password_hash"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def row_to_dict(obj: Base, exclude: set[str] | None = None) -> Dict[str, Any]:
    """Convertit une ligne ORM en dict JSON-compatible (UUID, dates et décimaux en texte)."""
    out: Dict[str, Any] = {}
    for column in obj.__table__.columns:
        if exclude and column.key in exclude:
            continue
        value = getattr(obj, column.key)
        if isinstance(value, (uuid.UUID, Decimal)):
            value = str(value)
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        out[column.key] = value
    return out


def _coerce(value: Any, python_type: type) -> Any:
    if value is None:
        return None
    if python_type is uuid.UUID:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    if python_type is datetime:
        dt = value if isinstance(value, datetime) else datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    if python_type is date:
        return value if isinstance(value, date) else date.fromisoformat(str(value)[:10])
    if python_type is Decimal:
        return Decimal(str(value))
    if python_type is bool:
        return value if isinstance(value, bool) else str(value).lower() == "true"
    if python_type is int:
        return int(value)
    return str(value)


def dict_to_row(model: Type[Base], data: Dict[str, Any]) -> Base:
    """Construit une instance ORM à partir d’un enregistrement exporté (clés inconnues ignorées)."""
    kwargs: Dict[str, Any] = {}
    for column in model.__table__.columns:
        if column.key in data:
            kwargs[column.key] = _coerce(data[column.key], column.type.python_type)
    return model(**kwargs)


class DatabaseService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _all(self, model: Type[Base]) -> List[Base]:
        return list((await self.db.execute(select(model))).scalars().all())

    async def export(self, *, actor: Optional[str] = None) -> DatabaseBackup:
        data: Dict[str, List[Dict[str, Any]]] = {
            "admins": [row_to_dict(a, _ADMIN_EXPORT_EXCLUDE) for a in await self._all(Admin)],
        }
        for key, model in RESTORE_ORDER:
            data[key] = [row_to_dict(row) for row in await self._all(model)]

        exported_at = _now_iso()
        await SettingsService(self.db).upsert_many({KEY_LAST_BACKUP: exported_at})

        log.info("database exported", extra={"actor": actor})
        return DatabaseBackup(metadata=BackupMetadata(version=BACKUP_VERSION, export_date=exported_at), data=data)

    async def import_backup(self, backup: DatabaseBackup, *, actor: Optional[str] = None) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        try:
            for _, model in reversed(RESTORE_ORDER):
                await self.db.execute(delete(model))

            for key, model in RESTORE_ORDER:
                records = backup.data.get(key) or []
                for record in records:
                    self.db.add(dict_to_row(model, record))
                counts[key] = len(records)
                # Flush par table : les inscriptions référencent des formations déjà insérées
                await self.db.flush()

            # Les clés techniques restaurées sont écrasées par l’horodatage courant
            await SettingsService(self.db).upsert_many({KEY_LAST_RESTORE: _now_iso()}, commit=False)
            await self.db.commit()
        except (ValueError, TypeError) as exc:
            await self.db.rollback()
            raise invalid_request("Format de sauvegarde invalide", details={"reason": str(exc)}) from exc
        except Exception:
            await self.db.rollback()
            raise

        log.info("database restored: %s", counts, extra={"actor": actor})
        return counts

    async def reset(self, *, actor: Optional[str] = None) -> None:
        try:
            for _, model in reversed(RESTORE_ORDER):
                await self.db.execute(delete(model))
            await self.db.execute(delete(Admin).where(Admin.role != Role.SUPER_ADMIN.value))
            self.db.add(Setting(key=KEY_LAST_RESET, value=_now_iso()))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        log.warning("database reset", extra={"actor": actor})

    async def stats(self) -> DatabaseStatsOut:
        async def count(model: Type[Base]) -> int:
            return int((await self.db.execute(select(func.count()).select_from(model))).scalar() or 0)

        settings = SettingsService(self.db)
        return DatabaseStatsOut(
            admins=await count(Admin),
            formations=await count(Formation),
            inscriptions=await count(Inscription),
            documents=await count(Document),
            images=await count(Image),
            news=await count(News),
            last_backup=await settings.get_value(KEY_LAST_BACKUP),
            last_restore=await settings.get_value(KEY_LAST_RESTORE),
            last_reset=await settings.get_value(KEY_LAST_RESET),
        )
