from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Deque, Dict, FrozenSet, Tuple

from fastapi import Request

from app.core.errors import AppHTTPException
from app.core.settings import settings

"""
Rate-limit des formulaires publics.

Rôle (fonctionnel) :
- Limite les POST publics (inscription, contact, signalement, sauvetage sportif, login) à
  RATE_LIMIT_RPM requêtes par minute, par IP et par route (fenêtre glissante de 60 s).
- IP cliente = pair TCP. X-Forwarded-For n’est lu que si ce pair figure dans TRUSTED_PROXIES
  (reverse proxy maîtrisé) : un client direct ne peut pas choisir son IP.
- État en mémoire du process : chaque worker uvicorn compte séparément. Les clés sans requête
  dans la fenêtre sont purgées.
- RATE_LIMIT_ENABLED=false (ou RPM <= 0) désactive la limite.
"""

LIMITED_PREFIXES = ("/api/inscriptions", "/api/auth/login")

WINDOW_SECONDS = 60.0


def trusted_proxies() -> FrozenSet[str]:
    return frozenset(p.strip() for p in (settings.TRUSTED_PROXIES or "").split(",") if p.strip())


def client_ip(request: Request) -> str:
    peer = request.client.host if request.client else "unknown"
    proxies = trusted_proxies()
    if peer not in proxies:
        return peer

    # Derrière nos proxies : premier saut non maîtrisé en partant de la droite
    forwarded = [h.strip() for h in request.headers.get("x-forwarded-for", "").split(",") if h.strip()]
    for hop in reversed(forwarded):
        if hop not in proxies:
            return hop
    return peer


class InMemoryRateLimiter:
    def __init__(self, window: float = WINDOW_SECONDS) -> None:
        self.window = window
        self._lock = Lock()
        self._hits: Dict[Tuple[str, str], Deque[float]] = {}
        self._last_sweep = time.monotonic()

    def applies_to(self, request: Request) -> bool:
        return request.method == "POST" and request.url.path.startswith(LIMITED_PREFIXES)

    def _sweep(self, now: float) -> None:
        """Supprime les clés dont la dernière requête est sortie de la fenêtre (appelé sous verrou)."""
        stale = [key for key, hits in self._hits.items() if not hits or now - hits[-1] >= self.window]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def check(self, request: Request) -> None:
        """Enregistre la requête ; lève 429 RATE_LIMITED si la limite est déjà atteinte."""
        limit = int(settings.RATE_LIMIT_RPM or 0)
        if not settings.RATE_LIMIT_ENABLED or limit <= 0:
            return

        key = (client_ip(request), request.url.path)
        now = time.monotonic()

        with self._lock:
            if now - self._last_sweep >= self.window:
                self._sweep(now)

            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= self.window:
                hits.popleft()

            if len(hits) >= limit:
                retry_after = max(1, int(self.window - (now - hits[0])))
                raise AppHTTPException(
                    429,
                    "RATE_LIMITED",
                    f"Trop de requêtes (limite: {limit}/min).",
                    details={"limit_rpm": limit, "retry_after": retry_after},
                )
            hits.append(now)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._last_sweep = time.monotonic()


rate_limiter = InMemoryRateLimiter()
