from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException

"""
Core Errors.

Rôle (fonctionnel) :
- Standardise le format des erreurs renvoyées par l’API (payload homogène).
- Fournit une exception applicative (AppHTTPException) + des raccourcis par type d’erreur
  (not_found, invalid_request, forbidden…) pour lever des erreurs métier de façon cohérente.

Convention de réponse (exemple) :
{
  "error": {
    "code": "INVALID_REQUEST",
    "message": "Plus de places disponibles pour cette formation",
    "status": 400,
    "request_id": "...",
    "timestamp": "...",
    "details": {...}
  }
}
"""


def now_iso() -> str:
    """Timestamp ISO-8601 en UTC (utilisé dans toutes les erreurs)."""
    return datetime.now(timezone.utc).isoformat()


def error_payload(
    *,
    code: str,
    message: str,
    status: int,
    request_id: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """Construit un payload d’erreur homogène pour l’API."""
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "status": status,
            "request_id": request_id,
            "timestamp": now_iso(),
        }
    }
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppHTTPException(HTTPException):
    """
    Exception applicative standardisée.

    Usage :
    - Lever une erreur “métier” avec un code stable et un message explicite.
    - Laisser la couche API/middlewares produire une réponse cohérente.

    Exemple :
        raise AppHTTPException(404, "NOT_FOUND", "Formation introuvable")
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            status_code=status_code,
            detail={"code": code, "message": message, "details": details},
            headers=headers,
        )

    @property
    def code(self) -> str:
        return str(self.detail.get("code", "HTTP_ERROR"))

    @property
    def message(self) -> str:
        return str(self.detail.get("message", ""))


def not_found(message: str, details: Any = None) -> AppHTTPException:
    return AppHTTPException(404, "NOT_FOUND", message, details)


def invalid_request(message: str, details: Any = None) -> AppHTTPException:
    return AppHTTPException(400, "INVALID_REQUEST", message, details)


def unauthorized(message: str = "Vous n'êtes pas authentifié ou votre session a expiré") -> AppHTTPException:
    return AppHTTPException(401, "UNAUTHORIZED", message, headers={"WWW-Authenticate": "Bearer"})


def forbidden(message: str = "Vous n'avez pas les droits nécessaires pour accéder à cette ressource") -> AppHTTPException:
    return AppHTTPException(403, "FORBIDDEN", message)


def conflict(message: str, details: Any = None) -> AppHTTPException:
    return AppHTTPException(409, "CONFLICT", message, details)
