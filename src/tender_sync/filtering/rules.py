"""Entry filter rules: each rule returns (passed, explanation, rule_id)."""

from typing import Iterable

from tender_sync.connectors.placsp.extract import extract_classification_code, extract_region
from tender_sync.models.raw import RawEntry
from tender_sync.regions import normalize_region, normalize_region_set


def is_in_scope(entry: RawEntry, division_prefix: str) -> bool:
    """True iff the entry has a classification code starting with the division prefix."""
    code = extract_classification_code(entry)
    if code is None:
        return False
    return str(code).startswith(division_prefix)


def matches_region(entry: RawEntry, regions_of_interest: Iterable[str]) -> bool:
    """True iff the entry's normalized region is among the normalized regions of interest."""
    region = normalize_region(extract_region(entry))
    if not region:
        return False
    return region in normalize_region_set(regions_of_interest)


def apply_sector_rule(entry: RawEntry, division_prefix: str) -> tuple[bool, str, str]:
    """Sector: classification code within the configured taxonomy division."""
    code = extract_classification_code(entry)
    if is_in_scope(entry, division_prefix):
        return True, f"Classification {code} in division {division_prefix}", "sector"
    if code is None:
        return False, "Excluded: no classification code", "sector"
    return False, f"Excluded: classification {code} outside division {division_prefix}", "sector"


def apply_region_rule(entry: RawEntry, normalized_regions: set[str]) -> tuple[bool, str, str]:
    """Region: extracted region, normalized, among the (already normalized) regions of interest."""
    region = extract_region(entry)
    if matches_region(entry, normalized_regions):
        return True, f"Matches region: {region}", "region"
    if not region:
        return False, "Excluded: no region could be extracted", "region"
    return False, f"Excluded: region {region} not in regions of interest", "region"
