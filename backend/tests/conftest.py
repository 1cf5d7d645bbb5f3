from __future__ import annotations

import os
import tempfile

# Configuration de test posée avant tout import de l’application
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="aloha-uploads-"))
os.environ["EMAIL_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ADMIN_EMAIL"] = "contact@aloha-secourisme.fr"
os.environ["JWT_SECRET"] = "test-secret"

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.api.deps import get_mailer
from app.core.rate_limit import rate_limiter
from app.core.settings import settings
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.enums import Role
from tests.helpers import FakeMailer, auth_headers, make_admin, make_formation

"""
Fixtures de test.

- Base SQLite (aiosqlite) par test, dans tmp_path : chaque transaction démarre en BEGIN IMMEDIATE
  (écritures sérialisées comme le verrou de ligne PostgreSQL sur la formation).
- get_db / get_mailer surchargés : aucune connexion PostgreSQL, aucun SMTP.
- Uploads écrits dans tmp_path.
"""


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Transactions pilotées par l’événement "begin" ci-dessous
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture(autouse=True)
def uploads_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(settings, "UPLOADS_DIR", str(path))
    return path


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
async def client(session_factory, mailer):
    async def _get_db():
        async with session_factory() as session:
            yield session

    async def _get_mailer():
        return mailer

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_mailer] = _get_mailer

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def admin(session_factory):
    return await make_admin(session_factory, email="admin@aloha-secourisme.fr", role=Role.ADMIN)


@pytest.fixture
async def super_admin(session_factory):
    return await make_admin(session_factory, email="super@aloha-secourisme.fr", role=Role.SUPER_ADMIN)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def super_headers(super_admin):
    return auth_headers(super_admin)


@pytest.fixture
async def formation(session_factory):
    return await make_formation(session_factory, total_seats=10)
