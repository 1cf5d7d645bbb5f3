from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AdminDep
from app.core.security import AdminContext
from app.db.session import get_db
from app.schemas.dashboard import DashboardStatsOut, InscriptionTrendsOut, YearlyStat
from app.services.dashboard_service import DashboardService

"""
API Dashboard.

Rôle (fonctionnel) :
- Expose les agrégats du back-office (KPI, comparaisons mensuelles, graphiques, tendances).
- Lecture seule : aucun effet de bord.
"""

router = APIRouter(prefix="/admin/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsOut)
async def dashboard_stats(db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await DashboardService(db).stats()


@router.get("/yearly-stats", response_model=List[YearlyStat])
async def yearly_stats(db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await DashboardService(db).yearly_stats()


@router.get("/inscription-trends", response_model=InscriptionTrendsOut)
async def inscription_trends(db: AsyncSession = Depends(get_db), ctx: AdminContext = AdminDep):
    return await DashboardService(db).inscription_trends()
