"""
app

Package racine de l’application backend Aloha Secourisme.

Rôle (fonctionnel) :
- Contient tout le code applicatif (API, logique métier, accès DB, schémas, templates d’emails).
- Sert de point d’ancrage pour les imports : `from app...`

Organisation (haute-level) :
- app.api       : routes FastAPI (contrats HTTP, dépendances, rôles)
- app.core      : briques transverses (settings, errors, logs, sécurité, rate-limit…)
- app.db        : base SQLAlchemy + session async
- app.models    : modèles ORM (tables Postgres)
- app.schemas   : schémas Pydantic (entrées/sorties API)
- app.services  : logique métier / use-cases (inscriptions, formations, emails, fichiers…)
- app.templates : templates Jinja2 des emails
"""

__version__ = "1.0.0"
