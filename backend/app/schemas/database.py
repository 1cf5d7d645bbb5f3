from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BackupMetadata(BaseModel):
    version: str = "1.0"
    export_date: Optional[str] = None


class DatabaseBackup(BaseModel):
    """
    Sauvegarde JSON complète (hors mots de passe).

    `data` : une liste d’enregistrements par table (admins, settings, formations, inscriptions,
    documents, images, news, email_templates).
    """
    model_config = ConfigDict(extra="ignore")

    metadata: BackupMetadata = Field(default_factory=BackupMetadata)
    data: Dict[str, List[Dict[str, Any]]]


class DatabaseStatsOut(BaseModel):
    admins: int
    formations: int
    inscriptions: int
    documents: int
    images: int
    news: int
    last_backup: Optional[str] = None
    last_restore: Optional[str] = None
    last_reset: Optional[str] = None
