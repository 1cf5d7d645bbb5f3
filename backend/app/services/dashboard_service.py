from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.admin import Admin
from app.models.document import Document
from app.models.enums import FormationStatus, InscriptionStatus
from app.models.formation import Formation
from app.models.image import Image
from app.models.inscription import Inscription
from app.models.news import News
from app.schemas.dashboard import (
    CategoryCount,
    DashboardCharts,
    DashboardComparison,
    DashboardOverview,
    DashboardStatsOut,
    InscriptionTrendPoint,
    InscriptionTrendsOut,
    MonthCount,
    StatusCount,
    TypeCount,
    YearlyStat,
)
from app.schemas.formations import FormationOut

"""
Dashboard Service.

Rôle (fonctionnel) :
- Calcule la “vue agrégée” du back-office (1 endpoint = 1 payload complet) :
  - compteurs globaux (formations, inscriptions, admins, documents, images, actualités)
  - comparaisons mois courant / mois précédent, année courante / année précédente
  - 5 prochaines formations ouvertes
  - séries pour graphiques (par type, 12 derniers mois, statuts, catégories)
- Statistiques annuelles (3 dernières années) et tendances mensuelles des inscriptions.

Notes :
- Les regroupements par mois sont faits en Python à partir des dates (portable PostgreSQL / SQLite) ;
  les volumes d’un site de formation restent modestes.
- Les 12 mois renvoyés sont toujours complets (count=0 si aucun événement) pour des graphiques stables.
"""

ACTIVE_STATUSES = (FormationStatus.PLANNED.value, FormationStatus.IN_PROGRESS.value)


def _aware(dt: datetime) -> datetime:
    """Les dates relues depuis SQLite sont naïves : on les considère en UTC."""
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _month_key(dt: datetime) -> str:
    return f"{dt.year:04d}-{dt.month:02d}"


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def last_months(now: datetime, count: int = 12) -> List[str]:
    """Clés "YYYY-MM" des `count` derniers mois, du plus ancien au mois courant."""
    keys = []
    for delta in range(-(count - 1), 1):
        y, m = _shift_month(now.year, now.month, delta)
        keys.append(f"{y:04d}-{m:02d}")
    return keys


def _count_by_month(dates: Iterable[datetime], months: List[str]) -> List[MonthCount]:
    counter = Counter(_month_key(_aware(d)) for d in dates)
    return [MonthCount(month=m, count=counter.get(m, 0)) for m in months]


class DashboardService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _count(self, column, *where) -> int:
        stmt = select(func.count(column))
        for clause in where:
            stmt = stmt.where(clause)
        return int((await self.db.execute(stmt)).scalar() or 0)

    async def stats(self) -> DashboardStatsOut:
        now = datetime.now(timezone.utc)
        this_month = _month_key(now)
        ly, lm = _shift_month(now.year, now.month, -1)
        last_month = f"{ly:04d}-{lm:02d}"

        formation_rows = (await self.db.execute(select(Formation.date, Formation.type, Formation.status))).all()
        inscription_rows = (await self.db.execute(select(Inscription.created_at, Inscription.status))).all()

        f_months = Counter(_month_key(_aware(r.date)) for r in formation_rows)
        f_years = Counter(_aware(r.date).year for r in formation_rows)
        i_months = Counter(_month_key(_aware(r.created_at)) for r in inscription_rows)
        i_status = Counter(r.status for r in inscription_rows)

        total_downloads = int((await self.db.execute(select(func.coalesce(func.sum(Document.downloads), 0)))).scalar() or 0)

        overview = DashboardOverview(
            total_formations=len(formation_rows),
            active_formations=sum(1 for r in formation_rows if r.status in ACTIVE_STATUSES),
            total_inscriptions=len(inscription_rows),
            pending_inscriptions=i_status.get(InscriptionStatus.PENDING.value, 0),
            total_admins=await self._count(Admin.id),
            total_documents=await self._count(Document.id),
            total_downloads=total_downloads,
            total_images=await self._count(Image.id),
            total_news=await self._count(News.id, News.published.is_(True)),
        )

        comparison = DashboardComparison(
            formations_this_month=f_months.get(this_month, 0),
            formations_last_month=f_months.get(last_month, 0),
            formations_this_year=f_years.get(now.year, 0),
            formations_last_year=f_years.get(now.year - 1, 0),
            inscriptions_this_month=i_months.get(this_month, 0),
            inscriptions_last_month=i_months.get(last_month, 0),
        )

        upcoming_stmt = (
            select(Formation)
            .where(Formation.status.in_(ACTIVE_STATUSES), Formation.date > now)
            .order_by(Formation.date.asc())
            .limit(5)
        )
        upcoming = [FormationOut.model_validate(f) for f in (await self.db.execute(upcoming_stmt)).scalars().all()]

        charts = DashboardCharts(
            formations_by_type=[TypeCount(type=t, count=c) for t, c in sorted(Counter(r.type for r in formation_rows).items())],
            formations_by_month=_count_by_month((r.date for r in formation_rows), last_months(now)),
            inscriptions_by_status=[StatusCount(status=s.value, count=i_status.get(s.value, 0)) for s in InscriptionStatus],
            categories_distribution=await self._categories_distribution(),
        )

        return DashboardStatsOut(overview=overview, comparison=comparison, upcoming_formations=upcoming, charts=charts)

    async def _categories_distribution(self) -> List[CategoryCount]:
        doc_rows = (
            await self.db.execute(select(Document.category, func.count(Document.id)).group_by(Document.category))
        ).all()
        img_rows = (
            await self.db.execute(select(Image.category, func.count(Image.id)).group_by(Image.category))
        ).all()
        return [CategoryCount(category=f"Document - {cat}", count=int(n)) for cat, n in sorted(doc_rows)] + [
            CategoryCount(category=f"Image - {cat}", count=int(n)) for cat, n in sorted(img_rows)
        ]

    async def yearly_stats(self) -> List[YearlyStat]:
        year = datetime.now(timezone.utc).year
        years = [year - 2, year - 1, year]

        async def by_year(column) -> Counter:
            rows = (await self.db.execute(select(column))).scalars().all()
            return Counter(_aware(d).year for d in rows)

        formations = await by_year(Formation.date)
        inscriptions = await by_year(Inscription.created_at)
        documents = await by_year(Document.created_at)
        images = await by_year(Image.created_at)
        news = await by_year(News.created_at)

        return [
            YearlyStat(
                year=y,
                formations=formations.get(y, 0),
                inscriptions=inscriptions.get(y, 0),
                documents=documents.get(y, 0),
                images=images.get(y, 0),
                news=news.get(y, 0),
            )
            for y in years
        ]

    async def inscription_trends(self) -> InscriptionTrendsOut:
        now = datetime.now(timezone.utc)
        months = last_months(now)

        rows = (
            await self.db.execute(
                select(Inscription.created_at, Inscription.status, Formation.type).join(
                    Formation, Formation.id == Inscription.formation_id
                )
            )
        ).all()

        per_month: Dict[str, Counter] = {m: Counter() for m in months}
        for r in rows:
            key = _month_key(_aware(r.created_at))
            if key in per_month:
                per_month[key][r.status] += 1

        points = [
            InscriptionTrendPoint(
                month=m,
                total=sum(per_month[m].values()),
                pending=per_month[m].get(InscriptionStatus.PENDING.value, 0),
                accepted=per_month[m].get(InscriptionStatus.ACCEPTED.value, 0),
                refused=per_month[m].get(InscriptionStatus.REFUSED.value, 0),
                cancelled=per_month[m].get(InscriptionStatus.CANCELLED.value, 0),
            )
            for m in months
        ]
        by_type = Counter(r.type for r in rows)
        return InscriptionTrendsOut(
            months=points,
            by_formation_type=[TypeCount(type=t, count=c) for t, c in sorted(by_type.items())],
        )
