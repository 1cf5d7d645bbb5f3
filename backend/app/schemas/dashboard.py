from __future__ import annotations

from typing import List

from pydantic import BaseModel

from app.schemas.formations import FormationOut

"""
Schemas Dashboard (Pydantic).

Rôle (fonctionnel) :
- Définit le contrat de réponse des endpoints “dashboard” du back-office.
- Structure les données nécessaires au front :
  - vue d’ensemble (compteurs),
  - comparaisons mois / année,
  - formations à venir,
  - séries pour graphiques (par type, par mois, par statut, par catégorie).

Notes :
- Ces schémas sont des “DTO” de lecture : ils agrègent des données calculées (pas des lignes DB).
- Les mois sont au format "YYYY-MM".
"""


class DashboardOverview(BaseModel):
    """Compteurs globaux."""
    total_formations: int
    active_formations: int
    total_inscriptions: int
    pending_inscriptions: int
    total_admins: int
    total_documents: int
    total_downloads: int
    total_images: int
    total_news: int


class DashboardComparison(BaseModel):
    """Volumes courants vs période précédente (date de session pour les formations, date de dépôt pour les inscriptions)."""
    formations_this_month: int
    formations_last_month: int
    formations_this_year: int
    formations_last_year: int
    inscriptions_this_month: int
    inscriptions_last_month: int


class TypeCount(BaseModel):
    type: str
    count: int


class MonthCount(BaseModel):
    month: str  # "YYYY-MM"
    count: int


class StatusCount(BaseModel):
    status: str
    count: int


class CategoryCount(BaseModel):
    category: str
    count: int


class DashboardCharts(BaseModel):
    formations_by_type: List[TypeCount]
    formations_by_month: List[MonthCount]
    inscriptions_by_status: List[StatusCount]
    categories_distribution: List[CategoryCount]


class DashboardStatsOut(BaseModel):
    """Réponse complète du dashboard : vue d’ensemble + comparaisons + à venir + graphiques."""
    overview: DashboardOverview
    comparison: DashboardComparison
    upcoming_formations: List[FormationOut]
    charts: DashboardCharts


class YearlyStat(BaseModel):
    year: int
    formations: int
    inscriptions: int
    documents: int
    images: int
    news: int


class InscriptionTrendPoint(BaseModel):
    """Point mensuel : inscriptions déposées dans le mois, ventilées par statut courant."""
    month: str
    total: int
    pending: int
    accepted: int
    refused: int
    cancelled: int


class InscriptionTrendsOut(BaseModel):
    months: List[InscriptionTrendPoint]
    by_formation_type: List[TypeCount]
