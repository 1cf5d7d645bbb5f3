"""
scripts

Package utilitaire pour les scripts de maintenance / data.

Rôle (fonctionnel) :
- Contient des scripts exécutables (CLI) liés au projet :
  - création d’un compte administrateur (premier SUPER_ADMIN)
  - génération de données de démonstration

Note :
- Les scripts ne doivent pas contenir de logique métier “centrale” :
  ils orchestrent et appellent les modules de `app/` (models, security, settings…).
"""
