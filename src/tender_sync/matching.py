"""Sector keyword matching shared by scoring and the CLI."""

from typing import Iterable, Optional

from tender_sync.regions import normalize_text

# Canonical sector -> keywords searched in record title and category (folded)
SECTOR_KEYWORDS: dict[str, tuple[str, ...]] = {
    "residential building": (
        "building", "housing", "residential",
        "edificacion", "edificio", "vivienda", "residencial", "pabellon",
    ),
    "civil engineering": (
        "civil engineering", "infrastructure", "road",
        "obra civil", "infraestructura", "urbanizacion", "pavimentacion", "carretera", "ingenieria civil",
    ),
    "renovation": (
        "renovation", "refurbishment", "restoration",
        "rehabilitacion", "reforma", "restauracion", "mejora",
    ),
    "installations": (
        "installation", "electrical", "plumbing", "hvac",
        "instalacion", "instalaciones", "electrica", "fontaneria", "climatizacion",
    ),
}

# Alternate sector names -> canonical sector
SECTOR_ALIASES: dict[str, str] = {
    "edificacion residencial": "residential building",
    "building": "residential building",
    "obra civil": "civil engineering",
    "rehabilitacion y reformas": "renovation",
    "renovation and refurbishment": "renovation",
    "instalaciones": "installations",
}


def sector_keywords(sector: str) -> tuple[str, ...]:
    """Keywords for a declared sector; an unknown sector is its own keyword."""
    key = normalize_text(sector)
    key = SECTOR_ALIASES.get(key, key)
    return SECTOR_KEYWORDS.get(key, (key,) if key else ())


def keyword_in_text(text: Optional[str], keyword: str) -> bool:
    """Case- and accent-insensitive substring match."""
    kw = normalize_text(keyword)
    if not kw:
        return False
    return kw in normalize_text(text)


def matching_sector(sectors: Iterable[str], *texts: Optional[str]) -> Optional[str]:
    """First declared sector with a keyword found in any of the texts, else None."""
    for sector in sorted(sectors):
        for keyword in sector_keywords(sector):
            if any(keyword_in_text(t, keyword) for t in texts):
                return sector
    return None
