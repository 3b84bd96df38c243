"""Abstract base class for feed connectors."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from tender_sync.models.raw import RawEntry
from tender_sync.models.record import TenderRecord


class BaseConnector(ABC):
    """
    Standard interface for procurement feed connectors.
    All connectors must implement fetch and normalize.
    """

    source_id: str = ""

    @abstractmethod
    def fetch(self) -> list[RawEntry]:
        """
        Retrieve and parse the feed; returns raw entries, capped per run.
        Raises FetchError / ParseError on run-level failures.
        """
        pass

    @abstractmethod
    def normalize(self, entry: RawEntry, fetched_at: Optional[datetime] = None) -> Optional[TenderRecord]:
        """
        Convert one raw entry to a TenderRecord; None when essential mapping fails.
        """
        pass

    def fetch_records(self) -> list[TenderRecord]:
        """
        Fetch all entries and return normalized records, skipping malformed ones.
        """
        records = (self.normalize(e) for e in self.fetch())
        return [r for r in records if r is not None]
