from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import PageMeta


class NewsCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    author: Optional[str] = Field(default=None, max_length=255)
    published: bool = True


class NewsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    author: Optional[str] = Field(default=None, max_length=255)
    published: Optional[bool] = None


class NewsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    content: str
    author: Optional[str] = None
    published: bool
    created_at: datetime
    updated_at: datetime


class NewsListOut(BaseModel):
    news: List[NewsOut]
    pagination: PageMeta
