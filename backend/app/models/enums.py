from __future__ import annotations

from enum import Enum

"""
Énumérations métier partagées par les modèles ORM et les schémas API.

Les valeurs sont stockées telles quelles en base (colonnes String) : on évite les types ENUM
natifs PostgreSQL pour garder des migrations simples lorsqu’une valeur est ajoutée.
"""


class Role(str, Enum):
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class TypeFormation(str, Enum):
    """Familles de formations proposées (secourisme, sauvetage, formation de formateurs…)."""
    PSC1 = "PSC1"
    PSE1 = "PSE1"
    PSE2 = "PSE2"
    BNSSA = "BNSSA"
    SSA = "SSA"
    SST = "SST"
    BSB = "BSB"
    GQS = "GQS"
    TRAINER = "TRAINER"
    REFRESHER = "REFRESHER"
    BOAT_LICENSE = "BOAT_LICENSE"
    OTHER = "OTHER"


class FormationStatus(str, Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class InscriptionStatus(str, Enum):
    """
    Cycle de vie d’une inscription.

    PENDING -> ACCEPTED | REFUSED | CANCELLED
    ACCEPTED -> REFUSED | CANCELLED
    REFUSED / CANCELLED : états terminaux.
    """
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REFUSED = "REFUSED"
    CANCELLED = "CANCELLED"


class DocumentCategory(str, Enum):
    FORMATIONS_PRO = "FORMATIONS_PRO"
    FORMATIONS_GRAND_PUBLIC = "FORMATIONS_GRAND_PUBLIC"
    SAUVETAGE_SPORTIF = "SAUVETAGE_SPORTIF"
    GENERAL = "GENERAL"


class ImageCategory(str, Enum):
    formations = "formations"
    evenements = "evenements"
    equipe = "equipe"
    sauvetage = "sauvetage"
