# backend/scripts/seed_demo.py
from __future__ import annotations

import argparse
import random
import sys
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker

# Permet de lancer le script depuis backend/ sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.core.settings import settings
from app.models.enums import FormationStatus, InscriptionStatus, TypeFormation
from app.models.formation import Formation
from app.models.inscription import Inscription
from app.models.news import News

"""
Script CLI: seed_demo

Rôle (fonctionnel) :
- Génère des données de démonstration : formations (passées et à venir), inscriptions, actualités.
- Respecte le comptage des places : chaque inscription consomme une place, une inscription
  acceptée en consomme une seconde (même règle que InscriptionService).
"""

# ---- Données réalistes (Île-de-France) ----
CATALOGUE = [
    (TypeFormation.PSC1, "PSC1 - Prévention et Secours Civiques", "7h", Decimal("60")),
    (TypeFormation.PSE1, "PSE1 - Premiers Secours en Équipe niveau 1", "35h", Decimal("350")),
    (TypeFormation.PSE2, "PSE2 - Premiers Secours en Équipe niveau 2", "28h", Decimal("300")),
    (TypeFormation.BNSSA, "BNSSA - Surveillant Sauveteur Aquatique", "50h", Decimal("450")),
    (TypeFormation.SST, "SST - Sauveteur Secouriste du Travail", "14h", Decimal("200")),
    (TypeFormation.REFRESHER, "Recyclage PSE", "7h", Decimal("90")),
]

LOCATIONS = ["Paris 15e", "Boulogne-Billancourt", "Issy-les-Moulineaux", "Montreuil", "Vincennes"]
INSTRUCTORS = ["Sophie Martin", "Karim Benali", "Julie Moreau", "Thomas Petit"]
FIRST_NAMES = ["Léa", "Hugo", "Chloé", "Lucas", "Inès", "Nathan", "Camille", "Yanis", "Manon", "Louis"]
LAST_NAMES = ["Bernard", "Dubois", "Laurent", "Simon", "Michel", "Garcia", "Roux", "Fournier"]

# Places occupées par statut final (une place tant que PENDING ou ACCEPTED)
SEAT_COST = {
    InscriptionStatus.PENDING: 1,
    InscriptionStatus.ACCEPTED: 1,
    InscriptionStatus.REFUSED: 0,
    InscriptionStatus.CANCELLED: 0,
}


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def random_birthdate() -> date:
    return date.today() - timedelta(days=random.randint(16 * 365, 60 * 365))


def seed(reset: bool, formations: int, days: int) -> None:
    engine = create_engine(settings.DATABASE_URL_SYNC, future=True)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    with SessionLocal() as db:
        if reset:
            # ordre inverse des FK
            db.execute(delete(Inscription))
            db.execute(delete(Formation))
            db.execute(delete(News))
            db.commit()
            print("✅ Reset done (formations, inscriptions, news deleted).")

        inscriptions_count = 0
        for _ in range(formations):
            type_, title, duration, price = random.choice(CATALOGUE)
            start = now_utc() + timedelta(days=random.randint(-days, days))
            total = random.choice([8, 10, 12, 16])
            status = FormationStatus.COMPLETED if start < now_utc() else FormationStatus.PLANNED

            formation = Formation(
                title=title,
                type=type_.value,
                date=start.replace(hour=9, minute=0, second=0, microsecond=0),
                duration=duration,
                total_seats=total,
                available_seats=total,
                price=price,
                location=random.choice(LOCATIONS),
                instructor=random.choice(INSTRUCTORS),
                status=status.value,
            )
            db.add(formation)
            db.flush()

            for _ in range(random.randint(0, total)):
                ins_status = random.choices(
                    list(SEAT_COST),
                    weights=[4, 3, 1, 1],
                )[0]
                cost = SEAT_COST[ins_status]
                if formation.available_seats < cost:
                    break

                first_name = random.choice(FIRST_NAMES)
                last_name = random.choice(LAST_NAMES)
                db.add(
                    Inscription(
                        first_name=first_name,
                        last_name=last_name,
                        email=f"{first_name}.{last_name}@example.com".lower(),
                        phone=f"06{random.randint(10000000, 99999999)}",
                        birthdate=random_birthdate(),
                        formation_id=formation.id,
                        status=ins_status.value,
                        notified=ins_status != InscriptionStatus.PENDING,
                        created_at=start - timedelta(days=random.randint(1, 60)),
                    )
                )
                formation.available_seats -= cost
                inscriptions_count += 1

        for i in range(5):
            db.add(
                News(
                    title=f"Actualité #{i + 1}",
                    content="Retour sur nos dernières sessions de formation et annonces du club.",
                    author=random.choice(INSTRUCTORS),
                    published=i < 4,
                    created_at=now_utc() - timedelta(days=7 * i),
                )
            )

        db.commit()

        print("✅ Seed terminé.")
        print(f"   - Formations ajoutées: {formations}")
        print(f"   - Inscriptions ajoutées: {inscriptions_count}")
        print("   - Actualités ajoutées: 5")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="Supprime les données demo avant de reseed")
    parser.add_argument("--formations", type=int, default=20, help="Nombre de formations à générer")
    parser.add_argument("--days", type=int, default=180, help="Fenêtre de dates (± N jours autour d’aujourd’hui)")
    parser.add_argument("--seed", type=int, default=42, help="Seed RNG pour reproductibilité")
    args = parser.parse_args()

    random.seed(args.seed)
    seed(reset=args.reset, formations=args.formations, days=args.days)


if __name__ == "__main__":
    main()
