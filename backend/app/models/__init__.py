"""
app.models

Package ORM (SQLAlchemy) : définition des entités persistées en base.

Rôle (fonctionnel) :
- Centralise les modèles de l’application (Formation, Inscription, Admin, Document, Image, News,
  Setting, EmailTemplate).
- Permet des imports plus simples depuis app.models (ex: from app.models import Formation).
- Importer ce package enregistre toutes les tables dans Base.metadata (utilisé par Alembic et les tests).
"""

from app.models.admin import Admin
from app.models.formation import Formation
from app.models.inscription import Inscription
from app.models.document import Document
from app.models.image import Image
from app.models.news import News
from app.models.setting import Setting
from app.models.email_template import EmailTemplate

__all__ = [
    "Admin",
    "Formation",
    "Inscription",
    "Document",
    "Image",
    "News",
    "Setting",
    "EmailTemplate",
]
