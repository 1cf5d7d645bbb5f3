"""
app.services

Package “services” : logique applicative (use-cases) indépendante des endpoints HTTP.

Rôle (fonctionnel) :
- Contient les services qui orchestrent :
  - accès DB (via sessions),
  - workflow des inscriptions et comptabilité des places,
  - fichiers uploadés (documents, galerie, avatars, catalogue Excel),
  - notifications email (best-effort).

Principe :
- app.api = transport HTTP (routes, validation, dépendances)
- app.services = orchestration métier (réutilisable, testable)
- app.models / app.schemas = persistance et contrats
"""
