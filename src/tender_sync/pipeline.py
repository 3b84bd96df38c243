"""Pipeline orchestration: fetch → filter → transform."""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from tender_sync.connectors.base import BaseConnector
from tender_sync.filtering import FilterEngine, FilterResult
from tender_sync.models.raw import RawEntry
from tender_sync.models.record import TenderRecord

logger = logging.getLogger(__name__)


def transform_entries(
    connector: BaseConnector,
    entries: Iterable[RawEntry],
    fetched_at: Optional[datetime] = None,
) -> list[tuple[RawEntry, TenderRecord]]:
    """
    Normalize entries, keeping each record with the entry it came from.
    Entries the connector cannot map are skipped.
    """
    fetched_at = fetched_at or datetime.now(timezone.utc)
    pairs: list[tuple[RawEntry, TenderRecord]] = []
    skipped = 0
    for entry in entries:
        record = connector.normalize(entry, fetched_at=fetched_at)
        if record is None:
            skipped += 1
            continue
        pairs.append((entry, record))
    if skipped:
        logger.info("Skipped %d entries that could not be transformed", skipped)
    return pairs


def run_pipeline(
    connector: BaseConnector,
    *,
    division_prefix: str,
    regions_of_interest: Iterable[str],
    fetched_at: Optional[datetime] = None,
    return_filter_results: bool = False,
):
    """
    Fetch the feed, keep in-sector entries from regions of interest and
    transform them. Returns (entry, record) pairs plus the number of
    entries fetched. When return_filter_results=True, also returns the
    full filter results.
    FetchError and ParseError propagate.
    """
    entries = connector.fetch()
    engine = FilterEngine(division_prefix, regions_of_interest)
    results: list[FilterResult] = engine.filter_many(entries)
    passed = engine.passed_entries(results)
    pairs = transform_entries(connector, passed, fetched_at=fetched_at)
    if return_filter_results:
        return pairs, len(entries), results
    return pairs, len(entries)
