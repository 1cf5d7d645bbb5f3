from __future__ import annotations

import logging
import re
import unicodedata
from datetime import date, datetime, timedelta, timezone
from io import BytesIO
from typing import Any, Dict, List, Optional

import pandas as pd

from app.core.errors import invalid_request
from app.models.enums import FormationStatus, TypeFormation
from app.schemas.formations import CatalogueFormation

"""
Excel Import (catalogue des formations).

Rôle (fonctionnel) :
- Lit le tableur récapitulatif des formations (première feuille, première ligne = en-têtes).
- Associe les colonnes aux champs par correspondance souple sur l’en-tête
  (minuscules, sans accents, premier en-tête trouvé pour un champ).
- Normalise les dates (cellule date, numéro de série Excel, JJ/MM/AAAA, ISO).
- Classe chaque formation par mots-clés du titre (PSC1, PSE1, BNSSA…).

Les enregistrements produits ne sont pas persistés : ils alimentent le catalogue public.
"""

log = logging.getLogger("app.formations.excel")

EXCEL_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)

DEFAULT_DURATION = "Non spécifié"
DEFAULT_PRICE = "Sur demande"

_FRENCH_DATE = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})$")

# (mot-clé, type) testés dans l’ordre ; "ssa" exclut "bnssa" (testé avant)
_TYPE_KEYWORDS = (
    (("psc",), TypeFormation.PSC1),
    (("pse1",), TypeFormation.PSE1),
    (("pse2",), TypeFormation.PSE2),
    (("bnssa",), TypeFormation.BNSSA),
    (("ssa",), TypeFormation.SSA),
    (("sst",), TypeFormation.SST),
    (("bsb",), TypeFormation.BSB),
    (("gqs",), TypeFormation.GQS),
    (("formateur",), TypeFormation.TRAINER),
    (("recyclage", "continue"), TypeFormation.REFRESHER),
    (("permis cotier",), TypeFormation.BOAT_LICENSE),
)


def _normalize(text: Any) -> str:
    s = unicodedata.normalize("NFKD", str(text)).encode("ascii", "ignore").decode("ascii")
    return s.strip().lower()


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def extract_type(title: str) -> TypeFormation:
    t = _normalize(title)
    for keywords, ftype in _TYPE_KEYWORDS:
        if any(k in t for k in keywords):
            return ftype
    return TypeFormation.OTHER


def _header_field(header: str) -> Optional[str]:
    h = _normalize(header)
    if "formation" in h or "titre" in h or "intitule" in h:
        return "title"
    if "debut" in h or h == "date":
        return "start_date"
    if "fin" in h:
        return "end_date"
    if "description" in h or "contenu" in h:
        return "description"
    if "tarif" in h or "prix" in h or "cout" in h or "montant" in h:
        return "price"
    if "duree" in h or "horaires" in h or "heure" in h:
        return "duration"
    return None


def identify_columns(headers: List[Any]) -> Dict[str, int]:
    """
    Associe chaque champ connu à l’index de la première colonne correspondante.

    Une colonne plus à droite ne remplace jamais un champ déjà trouvé ("Formation" puis
    "Type de formation" : le titre reste la première).
    """
    mapping: Dict[str, int] = {}
    for idx, value in enumerate(headers):
        if _is_empty(value):
            continue
        field = _header_field(str(value))
        if field and field not in mapping:
            mapping[field] = idx

    if "title" not in mapping:
        # Repli : première colonne dont l’en-tête est un texte non vide
        for idx, value in enumerate(headers):
            if isinstance(value, str) and value.strip():
                mapping["title"] = idx
                break

    return mapping


def parse_date(value: Any) -> Optional[datetime]:
    """Convertit une cellule en datetime UTC, ou None si la valeur n’est pas interprétable."""
    if _is_empty(value):
        return None

    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return EXCEL_EPOCH + timedelta(days=float(value))
        except OverflowError:
            return None

    if isinstance(value, str):
        s = value.strip()
        m = _FRENCH_DATE.match(s)
        if m:
            day, month, year = (int(g) for g in m.groups())
            if year < 100:
                year += 2000 if year < 50 else 1900
            try:
                return datetime(year, month, day, tzinfo=timezone.utc)
            except ValueError:
                return None
        try:
            parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return None


def _cell_text(value: Any) -> str:
    if _is_empty(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _read_rows(data: bytes, filename: str = "") -> List[List[Any]]:
    engine = "openpyxl" if not filename.lower().endswith(".xls") else None
    try:
        df = pd.read_excel(BytesIO(data), header=None, engine=engine, sheet_name=0)
    except Exception as exc:
        raise invalid_request("Le fichier Excel est illisible", details={"reason": str(exc)}) from exc
    return df.astype(object).values.tolist()


def parse_workbook(data: bytes, filename: str = "") -> List[CatalogueFormation]:
    """Parse le contenu binaire d’un classeur et renvoie les formations du catalogue."""
    rows = _read_rows(data, filename)
    if not rows:
        raise invalid_request("Le fichier Excel ne contient pas de données valides")

    headers = rows[0]
    mapping = identify_columns(headers)
    log.info("excel columns mapped: %s", mapping)

    title_idx = mapping.get("title")
    if title_idx is None:
        return []

    def cell(row: List[Any], field: str) -> Any:
        idx = mapping.get(field)
        if idx is None or idx >= len(row):
            return None
        return row[idx]

    out: List[CatalogueFormation] = []
    for row in rows[1:]:
        title = _cell_text(cell(row, "title"))
        if not title:
            continue

        start = parse_date(cell(row, "start_date"))
        if start is None:
            if "start_date" in mapping:
                log.warning("invalid start date for %r, using now", title)
            start = datetime.now(timezone.utc)

        end = parse_date(cell(row, "end_date"))
        if end is None:
            end = start + timedelta(days=1)

        out.append(
            CatalogueFormation(
                id=f"formation-{len(out)}",
                title=title,
                type=extract_type(title),
                start_date=start,
                end_date=end,
                description=_cell_text(cell(row, "description")),
                duration=_cell_text(cell(row, "duration")) or DEFAULT_DURATION,
                price=_cell_text(cell(row, "price")) or DEFAULT_PRICE,
                status=FormationStatus.PLANNED,
            )
        )

    return out


def filter_catalogue(
    formations: List[CatalogueFormation],
    *,
    type: Optional[str] = None,
    period: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[CatalogueFormation]:
    """
    Filtre le catalogue.

    - type : valeur de TypeFormation, ou "all".
    - period : "all", une année ("2025"), ou "recent" (départ dans les 3 prochains mois).
    """
    result = formations
    if type and type != "all":
        result = [f for f in result if f.type.value == type]

    if period and period != "all":
        ref = now or datetime.now(timezone.utc)
        if period == "recent":
            horizon = ref + timedelta(days=92)
            result = [f for f in result if ref <= f.start_date <= horizon]
        elif period.isdigit():
            year = int(period)
            result = [f for f in result if f.start_date.year == year]
        else:
            raise invalid_request("Période inconnue", details={"period": period})

    return result
