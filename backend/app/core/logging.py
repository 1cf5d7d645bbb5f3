from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .request_id import get_request_id

"""
Logs JSON (une ligne par événement) corrélés par request_id.

Rôle (fonctionnel) :
- Un seul handler stdout partagé par l’application et uvicorn.
- Chaque ligne porte le request_id courant ("-" hors requête HTTP, ex: scripts).
- Les extras connus (STRUCTURED_KEYS) passés via `extra={...}` sont recopiés tels quels :
  on peut filtrer les logs par inscription, formation, destinataire d’email, admin…

Exemple :
    log.info("inscription status changed", extra={"inscription_id": "...", "old_status": "PENDING",
             "new_status": "REFUSED", "seats_delta": 1, "actor": "admin@aloha-secourisme.fr"})
"""

STRUCTURED_KEYS = (
    # HTTP
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
    "actor",
    # métier
    "formation_id",
    "inscription_id",
    "old_status",
    "new_status",
    "seats_delta",
    # emails
    "to",
    "template",
    "error_code",
)

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "msg": record.getMessage(),
        }
        entry.update({key: getattr(record, key) for key in STRUCTURED_KEYS if hasattr(record, key)})

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """
    (Re)configure le root logger en JSON sur stdout.

    Idempotent : les handlers existants sont remplacés (rechargement uvicorn --reload, tests).
    """
    lvl = (level or "INFO").upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(lvl)

    for name in _UVICORN_LOGGERS:
        uv = logging.getLogger(name)
        uv.handlers = [handler]
        uv.propagate = False
        uv.setLevel(lvl)
