"""
app.core

Package “cœur” de l’application : tout ce qui est transversal (cross-cutting concerns) et ne dépend
pas d’un domaine métier précis (formations, inscriptions, documents…).

- settings
  Configuration centralisée (variables d’environnement, SMTP, JWT, uploads, base de données).

- errors
  Format d’erreur API uniforme (code, message, status, request_id, timestamp) et exception
  applicative AppHTTPException avec ses raccourcis (not_found, invalid_request, forbidden…).

- logging
  Logs JSON enrichis du request_id et d’extras structurés (inscription_id, formation_id, statuts).

- request_id
  Identifiant de corrélation d’une requête (header X-Request-Id) porté par un ContextVar.

- rate_limit
  Limitation de débit en mémoire pour les formulaires publics (anti-spam).

- security
  Hachage des mots de passe (bcrypt) et tokens d’accès JWT des administrateurs.

En résumé :
- app.core = infrastructure + conventions
- app.api / app.services / app.models = endpoints + logique métier + persistance
"""
