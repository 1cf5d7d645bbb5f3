from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AdminDep
from app.core.security import AdminContext
from app.db.session import get_db
from app.schemas.common import MessageOut
from app.schemas.news import NewsCreate, NewsListOut, NewsOut, NewsUpdate
from app.services.news_service import NewsService

"""
API Actualités.

Rôle (fonctionnel) :
- Public : actualités publiées, paginées (page / limit) + détail.
- Admin : CRUD complet (brouillons compris).
"""

router = APIRouter(prefix="/news", tags=["news"])


# --- Admin (déclaré avant /{news_id} pour ne pas être capturé par le paramètre) ---
@router.get("/admin", response_model=List[NewsOut])
async def list_news_admin(db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await NewsService(db).find_all()


@router.post("/admin", response_model=NewsOut, status_code=201)
async def create_news(payload: NewsCreate, db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await NewsService(db).create(payload)


@router.get("/admin/{news_id}", response_model=NewsOut)
async def get_news_admin(news_id: UUID, db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await NewsService(db).find_one(news_id)


@router.put("/admin/{news_id}", response_model=NewsOut)
async def update_news(
    news_id: UUID,
    payload: NewsUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AdminContext = AdminDep,
):
    return await NewsService(db).update(news_id, payload)


@router.delete("/admin/{news_id}", response_model=MessageOut)
async def delete_news(news_id: UUID, db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    await NewsService(db).remove(news_id)
    return MessageOut(message="Actualité supprimée avec succès")


# --- Public ---
@router.get("", response_model=NewsListOut)
async def list_news(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    items, meta = await NewsService(db).find_published(page=page, limit=limit)
    return NewsListOut(news=[NewsOut.model_validate(n) for n in items], pagination=meta)


@router.get("/{news_id}", response_model=NewsOut)
async def get_news(news_id: UUID, db: AsyncSession = Depends(get_db)):
    return await NewsService(db).find_one(news_id, published_only=True)
