from __future__ import annotations

import logging
import re
import time
import unicodedata
from pathlib import Path

import aiofiles
from fastapi import UploadFile

from app.core.errors import AppHTTPException
from app.core.settings import settings

"""
Storage (fichiers uploadés).

Rôle (fonctionnel) :
- Centralise l’accès disque sous UPLOADS_DIR :
  - documents/ : fichiers téléchargeables
  - galerie/   : images optimisées de la galerie
  - avatars/   : avatars des administrateurs
  - excel/     : fichier catalogue des formations
- Lecture bornée des uploads (413 PAYLOAD_TOO_LARGE au-delà de la taille max).
- Écriture asynchrone (aiofiles) et nommage sûr ("{timestamp}-{nom-nettoyé}").

Les fichiers sont servis publiquement sous /uploads/<sous-dossier>/<fichier> (cf. app.main).
"""

log = logging.getLogger("app.storage")

DOCUMENTS = "documents"
GALLERY = "galerie"
AVATARS = "avatars"
EXCEL = "excel"

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")

_CHUNK = 1024 * 1024


def uploads_root() -> Path:
    return Path(settings.UPLOADS_DIR)


def subdir(name: str) -> Path:
    path = uploads_root() / name
    path.mkdir(parents=True, exist_ok=True)
    return path


def sanitize_filename(name: str) -> str:
    """Nom de fichier ASCII sans séparateurs de chemin (ex: "Fiche PSC1 été.pdf" -> "Fiche-PSC1-ete.pdf")."""
    base = Path(name or "fichier").name
    ascii_name = unicodedata.normalize("NFKD", base).encode("ascii", "ignore").decode("ascii")
    cleaned = _UNSAFE.sub("-", ascii_name).strip("-.")
    return cleaned or "fichier"


def timestamped_name(original: str) -> str:
    return f"{int(time.time() * 1000)}-{sanitize_filename(original)}"


def public_url(folder: str, filename: str) -> str:
    return f"/uploads/{folder}/{filename}"


async def read_upload(file: UploadFile, max_mb: int) -> bytes:
    """Lit un UploadFile en mémoire en refusant tout dépassement de `max_mb` Mo."""
    limit = int(max_mb) * 1024 * 1024
    chunks = []
    total = 0
    while True:
        chunk = await file.read(_CHUNK)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise AppHTTPException(
                413,
                "PAYLOAD_TOO_LARGE",
                f"Fichier trop volumineux (maximum {max_mb} Mo)",
                details={"max_mb": max_mb},
            )
        chunks.append(chunk)
    return b"".join(chunks)


async def save_bytes(folder: str, filename: str, data: bytes) -> Path:
    path = subdir(folder) / filename
    async with aiofiles.open(path, "wb") as out_file:
        await out_file.write(data)
    log.info("file written: %s (%d bytes)", path.name, len(data))
    return path


async def read_bytes(path: Path) -> bytes:
    async with aiofiles.open(path, "rb") as in_file:
        return await in_file.read()


def file_path(folder: str, filename: str) -> Path:
    return uploads_root() / folder / sanitize_filename(filename)


def delete_file(folder: str, filename: str) -> bool:
    """Supprime un fichier uploadé. Un fichier déjà absent n’est pas une erreur (log seulement)."""
    path = file_path(folder, filename)
    try:
        path.unlink()
    except FileNotFoundError:
        log.warning("file already missing: %s", path.name)
        return False
    return True
