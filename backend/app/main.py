from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from app.api.router import api_router
from app.core.errors import AppHTTPException, error_payload
from app.core.logging import setup_logging
from app.core.rate_limit import client_ip, rate_limiter
from app.core.request_id import ensure_request_id, get_request_id, set_request_id
from app.core.settings import settings

"""
Point d’entrée FastAPI de l’API Aloha Secourisme.

Rôle (fonctionnel) :
- Assemble l’application : CORS pour le site et le back-office, routeurs /api, fichiers publics /uploads.
- Observabilité HTTP :
  - X-Request-Id repris du client ou généré, renvoyé sur chaque réponse
  - une ligne de log JSON par requête (méthode, chemin, statut, durée, IP, admin connecté)
  - niveau WARNING au-delà de SLOW_REQUEST_MS
- Anti-spam : rate-limit des POST publics (formulaires, inscriptions, login).
- Toutes les erreurs sortent dans l’enveloppe {"error": {...}} (cf. app.core.errors).

Aucune règle métier ici : routes dans app.api, use-cases dans app.services.
"""


class UTF8JSONResponse(JSONResponse):
    """JSON avec charset explicite (noms et messages accentués)."""
    media_type = "application/json; charset=utf-8"


setup_logging(settings.LOG_LEVEL)

log = logging.getLogger("aloha")
http_log = logging.getLogger("app.http")

SLOW_MS = int(settings.SLOW_REQUEST_MS)

# Front Next.js en local
DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _split_origins(value: str) -> list[str]:
    """"https://a.fr, https://b.fr" -> ["https://a.fr", "https://b.fr"]"""
    return [o.strip() for o in (value or "").split(",") if o.strip()]


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id() or str(uuid.uuid4())


def _error_response(
    request: Request,
    status: int,
    code: str,
    message: str,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> UTF8JSONResponse:
    return UTF8JSONResponse(
        status_code=status,
        content=error_payload(code=code, message=message, status=status, request_id=_rid(request), details=details),
        headers=headers,
    )


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    default_response_class=UTF8JSONResponse,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_split_origins(settings.CORS_ORIGINS) or DEV_ORIGINS,
    allow_credentials=False,  # Bearer uniquement
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
    expose_headers=["X-Request-Id", "Content-Disposition"],
)

app.include_router(api_router)

# documents/, galerie/, avatars/ servis tels quels
UPLOADS_PATH = Path(settings.UPLOADS_DIR)
UPLOADS_PATH.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(UPLOADS_PATH)), name="uploads")


# Starlette empile les middlewares : le dernier déclaré enveloppe les précédents.
@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """429 RATE_LIMITED sur les POST publics au-delà de RATE_LIMIT_RPM (préflights CORS jamais bloqués)."""
    if request.method != "OPTIONS" and rate_limiter.applies_to(request):
        try:
            rate_limiter.check(request)
        except AppHTTPException as exc:
            return _error_response(request, exc.status_code, exc.code, exc.message, exc.detail.get("details"))
    return await call_next(request)


@app.middleware("http")
async def request_observability(request: Request, call_next):
    rid = ensure_request_id(request.headers.get("X-Request-Id"))
    request.state.request_id = rid

    started = time.perf_counter()
    response = None
    try:
        response = await call_next(request)
        response.headers["X-Request-Id"] = rid
        return response
    finally:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        http_log.log(
            logging.WARNING if elapsed_ms >= SLOW_MS else logging.INFO,
            "request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code if response is not None else None,
                "duration_ms": elapsed_ms,
                "client_ip": client_ip(request),
                "actor": getattr(request.state, "actor", None),
            },
        )
        set_request_id(None)


@app.exception_handler(AppHTTPException)
async def app_http_exception_handler(request: Request, exc: AppHTTPException):
    detail = exc.detail if isinstance(exc.detail, dict) else {}
    return _error_response(
        request,
        exc.status_code,
        str(detail.get("code", "HTTP_ERROR")),
        str(detail.get("message", "Erreur HTTP")),
        detail.get("details"),
        headers=exc.headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """404 / 405 du routeur et HTTPException levées hors AppHTTPException."""
    if isinstance(exc.detail, dict):
        return _error_response(
            request,
            exc.status_code,
            str(exc.detail.get("code", "HTTP_ERROR")),
            str(exc.detail.get("message", "Erreur HTTP")),
            exc.detail.get("details"),
        )
    code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
    return _error_response(request, exc.status_code, code, str(exc.detail), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _error_response(request, 422, "VALIDATION_ERROR", "Requête invalide", jsonable_encoder(exc.errors()))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Unicité, clé étrangère ou CHECK violés en base."""
    log.warning("integrity error: %s", exc.orig)
    return _error_response(request, 409, "CONFLICT", "Conflit avec l'état actuel des données")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    # La stacktrace reste dans les logs serveur
    log.exception("unhandled error: %s", exc)
    return _error_response(request, 500, "INTERNAL_ERROR", "Erreur interne du serveur")
