from __future__ import annotations

import re
import uuid
from contextvars import ContextVar

"""
Core Request ID.

Rôle (fonctionnel) :
- Gère l’identifiant de requête (X-Request-Id) dans un ContextVar.
- Sert de fil rouge entre le middleware HTTP, les logs JSON et les payloads d’erreur.

Règles :
- Un identifiant entrant est réutilisé s’il est “propre” (alphanumérique, -, _, ., 64 caractères max).
- Sinon (absent ou suspect), on génère un UUID4.
"""

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

_SAFE_RID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def set_request_id(rid: str | None) -> None:
    _request_id.set(rid)


def get_request_id() -> str | None:
    return _request_id.get()


def ensure_request_id(incoming: str | None = None) -> str:
    """Réutilise l’identifiant entrant s’il est valide, sinon en génère un nouveau."""
    candidate = (incoming or "").strip()
    rid = candidate if _SAFE_RID.match(candidate) else str(uuid.uuid4())
    set_request_id(rid)
    return rid
