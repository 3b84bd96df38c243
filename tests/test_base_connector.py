"""Unit tests for BaseConnector interface."""

from datetime import datetime
from typing import Optional

import pytest

from tender_sync.connectors.base import BaseConnector
from tender_sync.models.raw import RawEntry
from tender_sync.models.record import TenderRecord


class ConcreteConnector(BaseConnector):
    """Concrete implementation for testing base behavior."""

    source_id = "test"

    def fetch(self) -> list[RawEntry]:
        return [
            RawEntry(data={"id": "1", "title": "A"}),
            RawEntry(data={"title": "no id"}),
            RawEntry(data={"id": "2", "title": "B"}),
        ]

    def normalize(self, entry: RawEntry, fetched_at: Optional[datetime] = None) -> Optional[TenderRecord]:
        if "id" not in entry.data:
            return None
        return TenderRecord(
            id=f"test:{entry.data['id']}",
            source="test",
            external_id=entry.data["id"],
            title=entry.data["title"],
        )


class TestBaseConnector:
    """Tests for BaseConnector default implementations."""

    def test_fetch_records_normalizes_and_skips_failures(self) -> None:
        """fetch_records normalizes each entry and drops the ones that return None."""
        records = ConcreteConnector().fetch_records()
        assert [r.id for r in records] == ["test:1", "test:2"]

    def test_abstract_methods_required(self) -> None:
        class Incomplete(BaseConnector):
            def fetch(self) -> list[RawEntry]:
                return []

        with pytest.raises(TypeError):
            Incomplete()
