"""Field extraction from raw PLACSP entries.

Every extractor is independent and returns None (or its named default)
instead of raising, so a miss on one field never blocks the others.
"""

from datetime import date
from typing import Optional

from tender_sync.models.raw import RawEntry
from tender_sync.models.record import ExtractedFields
from tender_sync.regions import find_region_in_text

from .constants import (
    BUDGET_PATHS,
    CLASSIFICATION_PATH,
    DEADLINE_PATH,
    DEFAULT_ISSUING_BODY,
    DEFAULT_STATUS_CODE,
    ISSUING_BODY_PATHS,
    REGION_PATHS,
    STATUS_PATHS,
    SUMMARY,
    TITLE,
)
from .parsers import contract_folder, first_text, get_path, node_text, parse_amount, parse_date


def extract_classification_code(entry: RawEntry) -> Optional[str]:
    """CPV code of the first required commodity classification."""
    folder = contract_folder(entry.data)
    if folder is None:
        return None
    return node_text(get_path(folder, CLASSIFICATION_PATH))


def extract_issuing_body(entry: RawEntry) -> str:
    """Contracting party name, or the 'Not specified' default."""
    folder = contract_folder(entry.data)
    if folder is None:
        return DEFAULT_ISSUING_BODY
    return first_text(folder, ISSUING_BODY_PATHS) or DEFAULT_ISSUING_BODY


def extract_region(entry: RawEntry) -> Optional[str]:
    """
    Region with decreasing-reliability fallbacks:
    1. structured realized-location address (sub-entity name, then code)
    2. gazetteer search of title + summary
    3. gazetteer search of the issuing body name
    """
    folder = contract_folder(entry.data)
    if folder is not None:
        structured = first_text(folder, REGION_PATHS)
        if structured:
            return structured

    text = " ".join(
        t for t in (node_text(entry.data.get(TITLE)), node_text(entry.data.get(SUMMARY))) if t
    )
    found = find_region_in_text(text)
    if found:
        return found

    body = extract_issuing_body(entry)
    if body == DEFAULT_ISSUING_BODY:
        return None
    return find_region_in_text(body)


def extract_budget(entry: RawEntry) -> Optional[float]:
    folder = contract_folder(entry.data)
    if folder is None:
        return None
    return parse_amount(first_text(folder, BUDGET_PATHS))


def extract_deadline(entry: RawEntry) -> Optional[date]:
    """Tender submission end date."""
    folder = contract_folder(entry.data)
    if folder is None:
        return None
    return parse_date(node_text(get_path(folder, DEADLINE_PATH)))


def extract_status(entry: RawEntry) -> str:
    folder = contract_folder(entry.data)
    if folder is None:
        return DEFAULT_STATUS_CODE
    return first_text(folder, STATUS_PATHS) or DEFAULT_STATUS_CODE


def extract_fields(entry: RawEntry) -> ExtractedFields:
    """All extractable fields of one entry."""
    return ExtractedFields(
        classification_code=extract_classification_code(entry),
        region=extract_region(entry),
        budget=extract_budget(entry),
        deadline=extract_deadline(entry),
        issuing_body=extract_issuing_body(entry),
        status_code=extract_status(entry),
    )
