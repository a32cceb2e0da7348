"""Village dataset import: normalizes raw regional exports into the lite format.

Raw files live in one directory, one per region, named ``borghi_<region>.json``.
Two raw formats are understood:

- Overpass JSON: ``{"elements": [{"type": "node", "lat", "lon", "tags": {...}}]}``
- Tabular array: ``[{"nome"|"name"|"comune", "lat"|"latitudine",
  "lng"|"lon"|"longitudine", "prov"|"provincia"}]``

Output ids are ``<region>-<slug(name)>``; duplicates by (region, name) keep
the first occurrence.
"""

from __future__ import annotations

import json
import logging
import math
import re
import unicodedata
from pathlib import Path
from typing import Any

from borghi.contracts.village import Village

logger = logging.getLogger(__name__)

# Province names -> two-letter codes (extend as regions are added)
PROVINCE_CODES: dict[str, str] = {
    # Liguria
    "GENOVA": "GE",
    "IMPERIA": "IM",
    "LA SPEZIA": "SP",
    "SAVONA": "SV",
    # Toscana
    "FIRENZE": "FI",
    "PISA": "PI",
    "LIVORNO": "LI",
    "LUCCA": "LU",
    "MASSA-CARRARA": "MS",
    "PRATO": "PO",
    "PISTOIA": "PT",
    "SIENA": "SI",
    "AREZZO": "AR",
    "GROSSETO": "GR",
    # Piemonte
    "TORINO": "TO",
    "CUNEO": "CN",
    "ALESSANDRIA": "AL",
    "ASTI": "AT",
    "NOVARA": "NO",
    "VERCELLI": "VC",
    "VERBANO-CUSIO-OSSOLA": "VB",
    "BIELLA": "BI",
}

_PROVINCE_TAGS = ("addr:province", "is_in:province", "addr:state_district", "addr:county")
_NAME_KEYS = ("nome", "name", "comune")
_LAT_KEYS = ("lat", "latitudine")
_LNG_KEYS = ("lng", "lon", "longitudine")
_PROVINCE_KEYS = ("prov", "provincia")

_FILENAME_RE = re.compile(r"borghi[_-]([a-z0-9\-]+)\.json$")


def slugify(text: str) -> str:
    """ASCII, lowercase, dash-separated."""
    ascii_text = unicodedata.normalize("NFD", str(text))
    ascii_text = "".join(c for c in ascii_text if not unicodedata.combining(c))
    return re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")


def region_from_filename(path: Path) -> str:
    """``borghi_toscana.json`` -> ``toscana``; otherwise the bare stem."""
    name = path.name.lower()
    match = _FILENAME_RE.search(name)
    return match.group(1) if match else re.sub(r"\.json$", "", name)


def province_code(value: Any) -> str | None:
    if not value:
        return None
    text = str(value).strip().upper()
    if re.fullmatch(r"[A-Z]{2}", text):
        return text
    return PROVINCE_CODES.get(text)


def _to_float(value: Any) -> float:
    if value is None or value == "":
        return math.nan
    try:
        if isinstance(value, str):
            return float(value.replace(",", "."))
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _first(row: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def parse_raw(data: Any, region_id: str) -> list[Village]:
    """Normalize one decoded raw file. Unknown formats yield an empty list."""
    if isinstance(data, dict) and isinstance(data.get("elements"), list):
        return _parse_overpass(data["elements"], region_id)
    if isinstance(data, list):
        return _parse_tabular(data, region_id)
    logger.warning("Unrecognized raw format for region %s", region_id)
    return []


def _parse_overpass(elements: list[dict], region_id: str) -> list[Village]:
    villages: list[Village] = []
    for el in elements:
        tags = el.get("tags") or {}
        if el.get("type") != "node" or el.get("lat") is None or el.get("lon") is None:
            continue
        if not tags.get("name"):
            continue
        province = next((tags[t] for t in _PROVINCE_TAGS if tags.get(t)), None)
        villages.append(Village(
            id=f"{region_id}-{slugify(tags['name'])}",
            name=tags["name"],
            lat=float(el["lat"]),
            lng=float(el["lon"]),
            province_code=province_code(province),
            region_id=region_id,
        ))
    return villages


def _parse_tabular(rows: list, region_id: str) -> list[Village]:
    villages: list[Village] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        name = _first(row, _NAME_KEYS)
        lat = _to_float(_first(row, _LAT_KEYS))
        lng = _to_float(_first(row, _LNG_KEYS))
        if not name or not math.isfinite(lat) or not math.isfinite(lng):
            continue
        villages.append(Village(
            id=f"{region_id}-{slugify(name)}",
            name=str(name),
            lat=lat,
            lng=lng,
            province_code=province_code(_first(row, _PROVINCE_KEYS)),
            region_id=region_id,
        ))
    return villages


def deduplicate(villages: list[Village]) -> list[Village]:
    seen: set[tuple[str, str]] = set()
    result: list[Village] = []
    for v in villages:
        key = (v.region_id, v.name.lower())
        if key in seen:
            continue
        seen.add(key)
        result.append(v)
    return result


def import_directory(raw_dir: Path) -> list[Village]:
    """Read every ``*.json`` in *raw_dir* (sorted by name) and merge them."""
    files = sorted(raw_dir.glob("*.json"))
    all_villages: list[Village] = []
    for path in files:
        region_id = region_from_filename(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        villages = parse_raw(data, region_id)
        logger.info("%s: %d villages", path.name, len(villages))
        all_villages.extend(villages)
    return deduplicate(all_villages)
