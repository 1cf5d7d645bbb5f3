from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.enums import Role


class LoginIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=200)


class AuthUserOut(BaseModel):
    """Résumé de l’administrateur connecté (renvoyé avec le token)."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    last_name: str
    first_name: str
    role: Role


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AuthUserOut
