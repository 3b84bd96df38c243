"""Pytest fixtures for tender-sync tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from tender_sync.connectors.placsp import PlacspConnector
from tender_sync.connectors.placsp.parsers import parse_feed
from tender_sync.models.profile import SubscriberProfile
from tender_sync.models.raw import RawEntry
from tender_sync.store import MatchStore, RecordStore, SubscriberStore, SyncLogStore

from tests.feeds import build_feed, make_entry, mock_client


def _future(days: int) -> str:
    return (datetime.now(timezone.utc).date() + timedelta(days=days)).isoformat()


@pytest.fixture
def sample_feed_xml() -> str:
    """Two entries: a building contract in Madrid and a non-construction service."""
    return build_feed(
        make_entry("EXP-2024/001", cpv="45210000", region="Madrid", deadline=_future(20)),
        make_entry(
            "SERV-2024/002",
            title="Servicios de consultoría",
            cpv="79000000",
            region="Barcelona",
            deadline=_future(20),
        ),
    )


@pytest.fixture
def sample_entries(sample_feed_xml: str) -> list[RawEntry]:
    """RawEntries parsed from the sample feed."""
    return [RawEntry(data=e) for e in parse_feed(sample_feed_xml)]


@pytest.fixture
def madrid_entry(sample_entries: list[RawEntry]) -> RawEntry:
    return sample_entries[0]


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    """Temporary database path for isolated tests."""
    return tmp_path / "tender_sync.db"


@pytest.fixture
def record_store(temp_db: Path) -> RecordStore:
    return RecordStore(temp_db)


@pytest.fixture
def match_store(temp_db: Path) -> MatchStore:
    return MatchStore(temp_db)


@pytest.fixture
def subscriber_store(temp_db: Path) -> SubscriberStore:
    return SubscriberStore(temp_db)


@pytest.fixture
def sync_log(temp_db: Path) -> SyncLogStore:
    return SyncLogStore(temp_db)


@pytest.fixture
def madrid_profile() -> SubscriberProfile:
    """Onboarded subscriber interested in Madrid, 100k-500k, no sectors."""
    return SubscriberProfile(
        user_id="user-1",
        preferred_region="Madrid",
        budget_min=100_000,
        budget_max=500_000,
        onboarding_completed=True,
    )


@pytest.fixture
def feed_connector(sample_feed_xml: str) -> PlacspConnector:
    """PlacspConnector served by a mock transport returning the sample feed."""
    return PlacspConnector(feed_url="https://feed.test/atom", client=mock_client(sample_feed_xml))


@pytest.fixture
def placsp_connector_patched(sample_feed_xml: str):
    """Context manager that patches PlacspConnector._fetch_feed with the sample feed."""
    return patch(
        "tender_sync.connectors.placsp.connector.PlacspConnector._fetch_feed",
        return_value=sample_feed_xml.encode("utf-8"),
    )
