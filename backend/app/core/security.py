from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.errors import unauthorized
from app.core.settings import settings
from app.models.enums import Role

"""
Core Security (JWT + mots de passe).

Rôle (fonctionnel) :
- Hachage / vérification des mots de passe administrateurs (bcrypt via passlib).
- Émission et vérification des tokens d’accès JWT (HS256) signés avec JWT_SECRET.
- Extraction du token depuis l’en-tête `Authorization: Bearer <token>`.

Contenu du token :
- sub   : identifiant de l’administrateur (UUID en string)
- email : email au moment de la connexion (informatif)
- role  : ADMIN | SUPER_ADMIN (revérifié en base à chaque requête, cf. app.api.deps)
- exp   : expiration (JWT_EXPIRES_MINUTES)
"""

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Hash corrompu / format inconnu : on refuse sans faire planter le login
        return False


def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Signe un JWT avec une expiration (par défaut JWT_EXPIRES_MINUTES)."""
    to_encode = dict(claims)
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.JWT_EXPIRES_MINUTES))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Décode et valide un JWT. Lève 401 si signature invalide, token expiré ou `sub` absent."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise unauthorized() from exc

    if not payload.get("sub"):
        raise unauthorized()
    return payload


def extract_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization")
    if not auth:
        return None
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip()
    return None


@dataclass(frozen=True)
class AdminContext:
    """
    Administrateur courant, résolu une fois par requête (cf. app.api.deps.get_current_admin)
    puis passé explicitement aux routes et services.
    """
    id: uuid.UUID
    email: str
    role: Role

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    @property
    def actor(self) -> str:
        """Identité utilisée dans les logs structurés (extra `actor`)."""
        return self.email
