from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

"""
DB Base.

Rôle (fonctionnel) :
- Définit la classe Base SQLAlchemy commune à tous les modèles ORM.
- Fixe une convention de nommage des contraintes (index, FK, CHECK) pour des migrations
  Alembic stables d’un environnement à l’autre.

Note :
- Tous les modèles doivent hériter de Base pour être enregistrés dans la metadata.
"""

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def utcnow() -> datetime:
    """Horodatage UTC “aware” utilisé comme valeur par défaut des colonnes created_at / updated_at."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Classe racine ORM (SQLAlchemy Declarative)."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
