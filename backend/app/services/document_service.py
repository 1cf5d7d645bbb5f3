from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import invalid_request, not_found
from app.core.settings import settings
from app.db.base import utcnow
from app.models.document import Document
from app.models.enums import DocumentCategory
from app.schemas.documents import DocumentOut, DocumentUpdate
from app.services import storage

"""
Document Service.

Rôle (fonctionnel) :
- Upload de documents (10 Mo max) stockés sous UPLOADS_DIR/documents ("{timestamp}-{nom}").
- Listing public par catégorie et téléchargement (compteur `downloads` incrémenté atomiquement).
- CRUD back-office ; la suppression efface aussi le fichier.
"""

log = logging.getLogger("app.documents")

MIME_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".txt": "text/plain",
}


def mime_type_for(filename: str) -> str:
    return MIME_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")


def to_out(document: Document) -> DocumentOut:
    return DocumentOut(
        id=document.id,
        title=document.title,
        category=DocumentCategory(document.category),
        filename=document.filename,
        size=document.size,
        downloads=document.downloads,
        url=f"/api/documents/{document.id}/download",
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


class DocumentService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_all(self, *, category: Optional[DocumentCategory] = None) -> List[Document]:
        stmt = select(Document).order_by(Document.created_at.desc())
        if category is not None:
            stmt = stmt.where(Document.category == category.value)
        return list((await self.db.execute(stmt)).scalars().all())

    async def find_one(self, document_id: uuid.UUID, *, refresh: bool = False) -> Document:
        stmt = select(Document).where(Document.id == document_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        document = (await self.db.execute(stmt)).scalars().first()
        if document is None:
            raise not_found("Document introuvable", details={"document_id": str(document_id)})
        return document

    async def create(
        self,
        file: Optional[UploadFile],
        *,
        title: str,
        category: DocumentCategory,
        actor: Optional[str] = None,
    ) -> Document:
        if file is None or not file.filename:
            raise invalid_request("Aucun fichier fourni")
        if not title.strip():
            raise invalid_request("Le titre est obligatoire")

        data = await storage.read_upload(file, settings.MAX_DOCUMENT_SIZE_MB)
        filename = storage.timestamped_name(file.filename)
        await storage.save_bytes(storage.DOCUMENTS, filename, data)

        document = Document(
            title=title.strip(),
            category=category.value,
            filename=filename,
            size=len(data),
            downloads=0,
        )
        self.db.add(document)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            storage.delete_file(storage.DOCUMENTS, filename)
            raise
        await self.db.refresh(document)

        log.info("document uploaded: %s", filename, extra={"actor": actor})
        return document

    async def update(self, document_id: uuid.UUID, payload: DocumentUpdate) -> Document:
        document = await self.find_one(document_id)
        if payload.title is not None:
            document.title = payload.title.strip()
        if payload.category is not None:
            document.category = payload.category.value
        document.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(document)
        return document

    async def remove(self, document_id: uuid.UUID, *, actor: Optional[str] = None) -> None:
        document = await self.find_one(document_id)
        filename = document.filename
        await self.db.delete(document)
        await self.db.commit()
        storage.delete_file(storage.DOCUMENTS, filename)
        log.info("document deleted: %s", filename, extra={"actor": actor})

    async def download(self, document_id: uuid.UUID) -> Tuple[Path, str, Document]:
        """Incrémente le compteur et renvoie (chemin, type MIME, document)."""
        document = await self.find_one(document_id)
        path = storage.file_path(storage.DOCUMENTS, document.filename)
        if not path.exists():
            raise not_found("Fichier du document introuvable", details={"document_id": str(document_id)})

        await self.db.execute(
            update(Document)
            .where(Document.id == document.id)
            .values(downloads=Document.downloads + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        document = await self.find_one(document_id, refresh=True)
        return path, mime_type_for(document.filename), document
