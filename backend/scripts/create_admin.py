# backend/scripts/create_admin.py
from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

# Permet de lancer le script depuis backend/ sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.core.security import hash_password
from app.core.settings import settings
from app.models.admin import Admin
from app.models.enums import Role

"""
Script CLI: create_admin

Rôle (fonctionnel) :
- Crée un compte d’accès au back-office (ADMIN ou SUPER_ADMIN) directement en base.
- Indispensable au premier démarrage : l’API ne permet de créer des comptes qu’à un SUPER_ADMIN.
- Avec --update, réinitialise le mot de passe / rôle d’un compte existant.

Usage :
    python scripts/create_admin.py --email admin@aloha.fr --first-name Jean --last-name Dupont --super
"""


def create_admin(email: str, password: str, first_name: str, last_name: str, role: Role, update: bool) -> int:
    engine = create_engine(settings.DATABASE_URL_SYNC, future=True)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    email = email.strip().lower()
    with SessionLocal() as db:
        existing = db.execute(select(Admin).where(Admin.email == email)).scalars().first()

        if existing is not None and not update:
            print(f"❌ Un compte existe déjà pour {email} (utiliser --update pour le modifier).")
            return 1

        if existing is not None:
            existing.password_hash = hash_password(password)
            existing.role = role.value
            db.commit()
            print(f"✅ Compte {email} mis à jour ({role.value}).")
            return 0

        db.add(
            Admin(
                email=email,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                role=role.value,
            )
        )
        db.commit()
        print(f"✅ Compte {email} créé ({role.value}).")
        return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Crée un compte administrateur")
    parser.add_argument("--email", required=True)
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="Aloha")
    parser.add_argument("--password", help="Mot de passe (demandé interactivement si absent)")
    parser.add_argument("--super", action="store_true", help="Crée un SUPER_ADMIN au lieu d’un ADMIN")
    parser.add_argument("--update", action="store_true", help="Met à jour le compte s’il existe déjà")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Mot de passe : ")
    if len(password) < 8:
        print("❌ Le mot de passe doit contenir au moins 8 caractères.")
        return 1

    role = Role.SUPER_ADMIN if args.super else Role.ADMIN
    return create_admin(args.email, password, args.first_name, args.last_name, role, args.update)


if __name__ == "__main__":
    sys.exit(main())
