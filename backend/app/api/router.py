from fastapi import APIRouter

from .health import router as health_router
from .auth import router as auth_router

from app.api.inscriptions import router as inscriptions_router
from app.api.formations import router as formations_router
from app.api.documents import router as documents_router
from app.api.gallery import router as gallery_router
from app.api.news import router as news_router
from app.api.settings import router as settings_router
from app.api.users import router as users_router
from app.api.dashboard import router as dashboard_router
from app.api.database import router as database_router

"""
Router principal de l’API.

Rôle (fonctionnel) :
- Regroupe les routeurs par domaine (health, auth, inscriptions, formations, contenus, admin…)
- Sert de point d’entrée unique, monté sous le préfixe /api par l’application FastAPI.
"""

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router)
api_router.include_router(inscriptions_router)
api_router.include_router(formations_router)
api_router.include_router(documents_router)
api_router.include_router(gallery_router)
api_router.include_router(news_router)
api_router.include_router(settings_router)
api_router.include_router(users_router)
api_router.include_router(dashboard_router)
api_router.include_router(database_router)
