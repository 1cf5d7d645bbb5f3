"""
app.db

Package base de données : connexion, session et helpers d’accès DB.

Contenu :
- base : classe Base déclarative + convention de nommage des contraintes.
- session : engine async et sessions SQLAlchemy pour FastAPI (Depends(get_db)).
- migrations : configuration Alembic (côté sync) via DATABASE_URL_SYNC.
"""
