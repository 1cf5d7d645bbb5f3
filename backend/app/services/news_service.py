from __future__ import annotations

import math
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import not_found
from app.db.base import utcnow
from app.models.news import News
from app.schemas.common import PageMeta
from app.schemas.news import NewsCreate, NewsUpdate


def page_meta(total: int, page: int, limit: int) -> PageMeta:
    total_pages = math.ceil(total / limit) if limit else 0
    return PageMeta(
        total=total,
        total_pages=total_pages,
        current_page=page,
        items_per_page=limit,
        next_page=page + 1 if page < total_pages else None,
    )


class NewsService:
    """Actualités : listing public paginé (publiées uniquement) + CRUD back-office."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_published(self, *, page: int = 1, limit: int = 10) -> Tuple[List[News], PageMeta]:
        base = select(News).where(News.published.is_(True))
        total = int((await self.db.execute(select(func.count()).select_from(base.subquery()))).scalar() or 0)

        stmt = base.order_by(News.created_at.desc()).offset((page - 1) * limit).limit(limit)
        items = list((await self.db.execute(stmt)).scalars().all())
        return items, page_meta(total, page, limit)

    async def find_all(self) -> List[News]:
        stmt = select(News).order_by(News.created_at.desc())
        return list((await self.db.execute(stmt)).scalars().all())

    async def find_one(self, news_id: uuid.UUID, *, published_only: bool = False) -> News:
        news = await self.db.get(News, news_id)
        if news is None or (published_only and not news.published):
            raise not_found("Actualité introuvable", details={"news_id": str(news_id)})
        return news

    async def create(self, payload: NewsCreate) -> News:
        news = News(**payload.model_dump())
        self.db.add(news)
        await self.db.commit()
        await self.db.refresh(news)
        return news

    async def update(self, news_id: uuid.UUID, payload: NewsUpdate) -> News:
        news = await self.find_one(news_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None and field != "author":
                continue
            setattr(news, field, value)
        news.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(news)
        return news

    async def remove(self, news_id: uuid.UUID) -> None:
        news = await self.find_one(news_id)
        await self.db.delete(news)
        await self.db.commit()
