from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

"""
Schemas communs (Pydantic).

Rôle (fonctionnel) :
- Petits DTO réutilisés par plusieurs domaines (messages simples, métadonnées de pagination).
"""


class MessageOut(BaseModel):
    """Réponse minimale pour les actions sans ressource à renvoyer (suppression, envoi de formulaire…)."""
    message: str


class PageMeta(BaseModel):
    """Métadonnées de pagination (listes paginées du back-office)."""
    model_config = ConfigDict(populate_by_name=True)

    total: int
    total_pages: int
    current_page: int
    items_per_page: int
    next_page: Optional[int] = None
