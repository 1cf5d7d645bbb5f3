from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ImageCategory


class ImageUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    alt: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[ImageCategory] = None


class ImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    filename: str
    alt: str
    category: ImageCategory
    url: str
    created_at: datetime
    updated_at: datetime


class GalleryGroup(BaseModel):
    """Galerie publique regroupée par catégorie (mode=all)."""
    category: ImageCategory
    images: List[ImageOut]
