from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

"""
Schemas Settings (Pydantic).

Rôle (fonctionnel) :
- Vue structurée des paramètres du site (contact, réseaux sociaux, notifications).
- En base, ces paramètres sont stockés à plat (clé "section.champ" -> valeur texte).
"""


class ContactSettings(BaseModel):
    email: str = ""
    phone: str = ""
    address: str = ""


class SocialSettings(BaseModel):
    facebook: str = ""
    instagram: str = ""


class NotificationSettings(BaseModel):
    email_inscription: bool = True
    email_contact: bool = True


class SettingsOut(BaseModel):
    contact: ContactSettings
    social: SocialSettings
    notifications: NotificationSettings


class ContactSettingsIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=30)
    address: Optional[str] = Field(default=None, max_length=500)


class SocialSettingsIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    facebook: Optional[str] = Field(default=None, max_length=500)
    instagram: Optional[str] = Field(default=None, max_length=500)


class NotificationSettingsIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email_inscription: Optional[bool] = None
    email_contact: Optional[bool] = None


class SettingsUpdate(BaseModel):
    """Mise à jour partielle : seules les sections / champs fournis sont écrits."""
    model_config = ConfigDict(extra="forbid")

    contact: Optional[ContactSettingsIn] = None
    social: Optional[SocialSettingsIn] = None
    notifications: Optional[NotificationSettingsIn] = None


class SettingsAdminOut(SettingsOut):
    """Vue admin : ajoute les clés techniques (lastBackup, lastRestore…)."""
    system: Dict[str, str] = Field(default_factory=dict)
