"""
app.api

Routes FastAPI regroupées par domaine, montées sous /api par app.api.router.
Les dépendances d’authentification / rôles sont dans app.api.deps.
"""
