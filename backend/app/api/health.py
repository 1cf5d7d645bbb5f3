from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app import __version__
from app.core.settings import settings
from app.db.session import get_db

"""
API Health.

Rôle (fonctionnel) :
- Vérifie que l’API répond et que la base est joignable (SELECT 1).
- Expose quelques infos utiles à la supervision (uptime, env, version, temps de réponse DB).
- Répond toujours 200 : `status` vaut "ok" ou "degraded" selon l’état de la base.
"""

router = APIRouter()
log = logging.getLogger("app.health")

STARTED_AT = time.monotonic()


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)):
    start = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
        database = "up"
    except Exception as exc:
        log.warning("database check failed: %s", exc)
        database = "down"
    response_ms = int((time.perf_counter() - start) * 1000)

    return {
        "status": "ok" if database == "up" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": int(time.monotonic() - STARTED_AT),
        "database": database,
        "response_time_ms": response_ms,
        "environment": settings.ENV,
        "version": __version__,
    }
