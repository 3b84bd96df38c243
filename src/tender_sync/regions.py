"""Region gazetteer and locale-robust region name normalization.

One table serves the free-text region fallback, the region-of-interest
filter, subscriber matching and the parent-region lookup, so every
consumer recognizes the same spellings. Bump GAZETTEER_VERSION when
entries change.
"""

import unicodedata
from dataclasses import dataclass
from typing import Optional

GAZETTEER_VERSION = "2024.2"


@dataclass(frozen=True)
class Province:
    """Canonical province with its parent community and alternate spellings."""

    name: str
    parent: str
    aliases: tuple[str, ...] = ()

    @property
    def spellings(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


_ANDALUCIA = "Andalucía"
_ARAGON = "Aragón"
_CANARIAS = "Canarias"
_CATALUNA = "Cataluña"
_CLM = "Castilla-La Mancha"
_CYL = "Castilla y León"
_EXTREMADURA = "Extremadura"
_GALICIA = "Galicia"
_PAIS_VASCO = "País Vasco"
_VALENCIANA = "Comunidad Valenciana"

GAZETTEER: tuple[Province, ...] = (
    Province("Álava", _PAIS_VASCO, ("Araba",)),
    Province("Albacete", _CLM),
    Province("Alicante", _VALENCIANA, ("Alacant",)),
    Province("Almería", _ANDALUCIA),
    Province("Asturias", "Principado de Asturias"),
    Province("Ávila", _CYL),
    Province("Badajoz", _EXTREMADURA),
    Province("Barcelona", _CATALUNA),
    Province("Burgos", _CYL),
    Province("Cáceres", _EXTREMADURA),
    Province("Cádiz", _ANDALUCIA),
    Province("Cantabria", "Cantabria"),
    Province("Castellón", _VALENCIANA, ("Castelló",)),
    Province("Ciudad Real", _CLM),
    Province("Córdoba", _ANDALUCIA),
    Province("Cuenca", _CLM),
    Province("Gerona", _CATALUNA, ("Girona",)),
    Province("Granada", _ANDALUCIA),
    Province("Guadalajara", _CLM),
    Province("Guipúzcoa", _PAIS_VASCO, ("Gipuzkoa",)),
    Province("Huelva", _ANDALUCIA),
    Province("Huesca", _ARAGON),
    Province("Islas Baleares", "Illes Balears", ("Illes Balears", "Baleares", "Mallorca")),
    Province("Jaén", _ANDALUCIA),
    Province("La Coruña", _GALICIA, ("A Coruña", "Coruña")),
    Province("La Rioja", "La Rioja", ("Rioja",)),
    Province("Las Palmas", _CANARIAS, ("Palmas", "Gran Canaria")),
    Province("León", _CYL),
    Province("Lérida", _CATALUNA, ("Lleida",)),
    Province("Lugo", _GALICIA),
    Province("Madrid", "Comunidad de Madrid"),
    Province("Málaga", _ANDALUCIA),
    Province("Murcia", "Región de Murcia"),
    Province("Navarra", "Comunidad Foral de Navarra", ("Nafarroa",)),
    Province("Orense", _GALICIA, ("Ourense",)),
    Province("Palencia", _CYL),
    Province("Pontevedra", _GALICIA),
    Province("Salamanca", _CYL),
    Province("Santa Cruz de Tenerife", _CANARIAS, ("Tenerife",)),
    Province("Segovia", _CYL),
    Province("Sevilla", _ANDALUCIA),
    Province("Soria", _CYL),
    Province("Tarragona", _CATALUNA),
    Province("Teruel", _ARAGON),
    Province("Toledo", _CLM),
    Province("Valencia", _VALENCIANA, ("València",)),
    Province("Valladolid", _CYL),
    Province("Vizcaya", _PAIS_VASCO, ("Bizkaia",)),
    Province("Zamora", _CYL),
    Province("Zaragoza", _ARAGON),
    Province("Ceuta", "Ceuta"),
    Province("Melilla", "Melilla"),
)


def normalize_text(text: Optional[str]) -> str:
    """Lowercase, strip diacritical marks, collapse whitespace. Empty string for None."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(stripped.split())


# Folded spelling -> province
_BY_SPELLING: dict[str, Province] = {
    normalize_text(spelling): province
    for province in GAZETTEER
    for spelling in province.spellings
}

# Folded spellings in gazetteer order
_SEARCH_ORDER: list[tuple[str, Province]] = [
    (normalize_text(spelling), province)
    for province in GAZETTEER
    for spelling in province.spellings
]


def normalize_region(text: Optional[str]) -> str:
    """
    Comparison key for a region name: folded text, with known alternate
    spellings collapsed onto the canonical province ("Girona" -> "gerona").
    Total: never raises, empty string for empty input.
    """
    folded = normalize_text(text)
    province = _BY_SPELLING.get(folded)
    return normalize_text(province.name) if province else folded


def lookup_province(name: Optional[str]) -> Optional[Province]:
    """Province for a name in any known spelling, or None."""
    return _BY_SPELLING.get(normalize_text(name))


def canonical_region(name: Optional[str]) -> Optional[str]:
    """Canonical display name for a known region; unknown names are returned trimmed."""
    if not name or not str(name).strip():
        return None
    province = lookup_province(name)
    return province.name if province else str(name).strip()


def parent_region(name: Optional[str]) -> Optional[str]:
    """Autonomous community for a province name, or None when unknown."""
    province = lookup_province(name)
    return province.parent if province else None


def find_region_in_text(text: Optional[str]) -> Optional[str]:
    """
    First gazetteer province whose folded spelling occurs anywhere in the
    folded text ("Madridejos" yields Madrid). Returns the canonical name.
    """
    folded = normalize_text(text)
    if not folded:
        return None
    for spelling, province in _SEARCH_ORDER:
        if spelling in folded:
            return province.name
    return None


def normalize_region_set(regions) -> set[str]:
    """Comparison keys for a collection of region names, empty names dropped."""
    return {key for key in (normalize_region(r) for r in regions or ()) if key}
