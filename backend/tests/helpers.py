from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List

from app.core.security import create_access_token, hash_password
from app.models import Admin, Formation
from app.models.enums import FormationStatus, Role, TypeFormation

"""Helpers de test : création de données et en-têtes d’authentification."""


class FakeMailer:
    """Remplace EmailService : enregistre les envois au lieu de les effectuer."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail

    async def send_email(self, to: str, subject: str, template: str, data: Dict[str, Any] | None = None) -> bool:
        if self.fail:
            raise RuntimeError("SMTP down")
        self.sent.append({"to": to, "subject": subject, "template": template, "data": data or {}})
        return True

    def templates(self) -> List[str]:
        return [m["template"] for m in self.sent]


async def make_admin(session_factory, *, email: str, role: Role, password: str = "password123") -> Admin:
    async with session_factory() as session:
        admin = Admin(
            email=email,
            password_hash=hash_password(password),
            first_name="Test",
            last_name=role.value.title(),
            role=role.value,
        )
        session.add(admin)
        await session.commit()
        return admin


async def make_formation(session_factory, *, total_seats: int = 10, available_seats: int | None = None, **fields) -> Formation:
    values: Dict[str, Any] = {
        "title": "PSC1 - Prévention et Secours Civiques",
        "type": TypeFormation.PSC1.value,
        "date": datetime.now(timezone.utc) + timedelta(days=30),
        "duration": "7h",
        "price": Decimal("60.00"),
        "location": "Paris 15e",
        "instructor": "Sophie Martin",
        "status": FormationStatus.PLANNED.value,
    }
    values.update(fields)
    async with session_factory() as session:
        formation = Formation(
            total_seats=total_seats,
            available_seats=total_seats if available_seats is None else available_seats,
            **values,
        )
        session.add(formation)
        await session.commit()
        return formation


async def seats_of(session_factory, formation_id: uuid.UUID) -> int:
    async with session_factory() as session:
        formation = await session.get(Formation, formation_id)
        return formation.available_seats


def auth_headers(admin: Admin) -> Dict[str, str]:
    token = create_access_token({"sub": str(admin.id), "email": admin.email, "role": admin.role})
    return {"Authorization": f"Bearer {token}"}


def inscription_payload(formation_id: uuid.UUID, **overrides) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "formation_id": str(formation_id),
        "last_name": "Dupont",
        "first_name": "Léa",
        "email": "lea.dupont@example.com",
        "phone": "06 12 34 56 78",
        "birthdate": (date.today() - timedelta(days=25 * 365)).isoformat(),
        "message": "Allergie au latex",
    }
    payload.update(overrides)
    return payload
