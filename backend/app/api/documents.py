from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AdminDep
from app.core.security import AdminContext
from app.db.session import get_db
from app.models.enums import DocumentCategory
from app.schemas.common import MessageOut
from app.schemas.documents import DocumentOut, DocumentUpdate
from app.services.document_service import DocumentService, to_out

"""
API Documents.

Rôle (fonctionnel) :
- Public : liste des documents (filtrable par catégorie) et téléchargement (compteur incrémenté).
- Admin : dépôt (multipart), détail, mise à jour des métadonnées, suppression (fichier compris).
"""

router = APIRouter(prefix="/documents", tags=["documents"])


# --- Public ---
@router.get("", response_model=List[DocumentOut])
async def list_documents(
    category: Optional[DocumentCategory] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return [to_out(d) for d in await DocumentService(db).find_all(category=category)]


@router.get("/{document_id}/download")
async def download_document(document_id: UUID, db: AsyncSession = Depends(get_db)):
    path, mime, document = await DocumentService(db).download(document_id)
    return FileResponse(path, media_type=mime, filename=document.filename)


# --- Admin ---
@router.post("/admin", response_model=DocumentOut, status_code=201)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    title: str = Form(...),
    category: DocumentCategory = Form(DocumentCategory.GENERAL),
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    document = await DocumentService(db).create(file, title=title, category=category, actor=ctx.actor)
    return to_out(document)


@router.get("/admin", response_model=List[DocumentOut])
async def list_documents_admin(
    category: Optional[DocumentCategory] = Query(None),
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return [to_out(d) for d in await DocumentService(db).find_all(category=category)]


@router.get("/admin/{document_id}", response_model=DocumentOut)
async def get_document(document_id: UUID, db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return to_out(await DocumentService(db).find_one(document_id))


@router.put("/admin/{document_id}", response_model=DocumentOut)
async def update_document(
    document_id: UUID,
    payload: DocumentUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return to_out(await DocumentService(db).update(document_id, payload))


@router.delete("/admin/{document_id}", response_model=MessageOut)
async def delete_document(document_id: UUID, db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    await DocumentService(db).remove(document_id, actor=ctx.actor)
    return MessageOut(message="Document supprimé avec succès")
