"""Unit tests for the SQLite stores."""

import sqlite3
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from tender_sync.errors import PersistenceError, RawPersistenceError
from tender_sync.models.match import Match
from tender_sync.models.profile import SubscriberProfile
from tender_sync.models.record import TenderRecord
from tender_sync.store import MatchStore, RecordStore, SubscriberStore, SyncLogStore


def _make_record(external_id: str = "EXP-1", **kwargs) -> TenderRecord:
    defaults = {
        "id": f"placsp:{external_id}",
        "source": "placsp",
        "external_id": external_id,
        "title": "Obras de urbanización",
        "region": "Madrid",
        "budget": 250_000.0,
        "deadline": date(2030, 1, 31),
    }
    defaults.update(kwargs)
    return TenderRecord(**defaults)


class TestRecordStore:
    """Tests for RecordStore."""

    def test_insert_and_find(self, record_store: RecordStore) -> None:
        stored = record_store.insert(_make_record())
        assert stored.created_at is not None
        assert stored.updated_at is not None
        found = record_store.find_by_external_id("EXP-1")
        assert found is not None
        assert found.title == "Obras de urbanización"
        assert found.deadline == date(2030, 1, 31)
        assert found.updated_at == stored.updated_at

    def test_find_missing(self, record_store: RecordStore) -> None:
        assert record_store.find_by_external_id("nope") is None

    def test_insert_keeps_given_timestamps(self, record_store: RecordStore) -> None:
        old = datetime(2024, 1, 1, tzinfo=timezone.utc)
        record_store.insert(_make_record(created_at=old, updated_at=old))
        assert record_store.get("placsp:EXP-1").updated_at == old

    def test_duplicate_insert_raises(self, record_store: RecordStore) -> None:
        record_store.insert(_make_record())
        with pytest.raises(PersistenceError) as exc:
            record_store.insert(_make_record())
        assert exc.value.code == "IntegrityError"

    def test_update_merges_and_stamps(self, record_store: RecordStore) -> None:
        old = datetime(2024, 1, 1, tzinfo=timezone.utc)
        record_store.insert(_make_record(created_at=old, updated_at=old))
        updated = record_store.update("placsp:EXP-1", {"title": "Nuevo título", "external_id": "ignored"})
        assert updated.title == "Nuevo título"
        assert updated.external_id == "EXP-1"
        assert updated.updated_at > old
        assert updated.created_at == old
        assert record_store.get("placsp:EXP-1").title == "Nuevo título"

    def test_update_missing_raises(self, record_store: RecordStore) -> None:
        with pytest.raises(PersistenceError):
            record_store.update("placsp:missing", {"title": "x"})

    def test_query_filters(self, record_store: RecordStore) -> None:
        record_store.insert(_make_record("A", status="active"))
        record_store.insert(_make_record("B", status="closed"))
        record_store.insert(_make_record("C", status="active", region="Sevilla"))
        assert {r.external_id for r in record_store.query(status="active")} == {"A", "C"}
        assert {r.external_id for r in record_store.query(region="Sevilla")} == {"C"}
        assert {r.external_id for r in record_store.query(external_ids=["A", "B"])} == {"A", "B"}
        assert record_store.query(external_ids=[]) == []

    def test_deactivate_closed_before(self, record_store: RecordStore) -> None:
        record_store.insert(_make_record("OLD", status="closed", deadline=date(2023, 1, 1)))
        record_store.insert(_make_record("RECENT", status="closed", deadline=date(2024, 5, 1)))
        record_store.insert(_make_record("OPEN", status="active", deadline=date(2023, 1, 1)))
        assert record_store.deactivate_closed_before(date(2024, 1, 1)) == 1
        assert record_store.get("placsp:OLD").is_active is False
        assert record_store.get("placsp:RECENT").is_active is True
        assert {r.external_id for r in record_store.query()} == {"RECENT", "OPEN"}

    def test_insert_raw(self, record_store: RecordStore) -> None:
        fetched = datetime(2024, 5, 10, tzinfo=timezone.utc)
        record_store.insert_raw("placsp", "EXP-1", fetched, {"title": "x", "nested": {"a": ["1", "2"]}})
        record_store.insert_raw("placsp", "EXP-1", fetched + timedelta(hours=6), {"title": "x"})
        assert record_store.raw_count("EXP-1") == 2

    def test_insert_raw_failure_is_raw_error(self, record_store: RecordStore, temp_db: Path) -> None:
        with sqlite3.connect(temp_db) as conn:
            conn.execute("DROP TABLE records_raw")
        with pytest.raises(RawPersistenceError):
            record_store.insert_raw("placsp", "EXP-1", datetime.now(timezone.utc), {})


class TestMatchStore:
    """Tests for MatchStore."""

    def test_create_and_exists(self, match_store: MatchStore) -> None:
        created = match_store.create(Match(user_id="u1", record_id="placsp:1", score=80, reasons=["a"]))
        assert created.id is not None
        assert match_store.exists("u1", "placsp:1") is True
        assert match_store.exists("u2", "placsp:1") is False

    def test_duplicate_pair_raises(self, match_store: MatchStore) -> None:
        match_store.create(Match(user_id="u1", record_id="placsp:1", score=80))
        with pytest.raises(PersistenceError):
            match_store.create(Match(user_id="u1", record_id="placsp:1", score=90))

    def test_list_for_user_ordering(self, match_store: MatchStore) -> None:
        now = datetime.now(timezone.utc)
        match_store.create(Match(user_id="u1", record_id="placsp:1", score=70, created_at=now - timedelta(hours=2)))
        match_store.create(Match(user_id="u1", record_id="placsp:2", score=90, created_at=now - timedelta(hours=1)))
        match_store.create(Match(user_id="u1", record_id="placsp:3", score=70, created_at=now))
        match_store.create(Match(user_id="u2", record_id="placsp:1", score=99))
        ids = [m.record_id for m in match_store.list_for_user("u1")]
        assert ids == ["placsp:2", "placsp:3", "placsp:1"]

    def test_mark_viewed(self, match_store: MatchStore) -> None:
        match = match_store.create(Match(user_id="u1", record_id="placsp:1", score=80))
        assert match_store.mark_viewed(match.id, "u2") is False
        assert match_store.mark_viewed(match.id, "u1") is True
        viewed = match_store.get(match.id)
        assert viewed.status == "viewed"
        assert viewed.viewed_at is not None

    def test_transitions_forward_only(self, match_store: MatchStore) -> None:
        match = match_store.create(Match(user_id="u1", record_id="placsp:1", score=80))
        assert match_store.mark_notified(match.id) is True
        assert match_store.mark_viewed(match.id, "u1") is False
        assert match_store.mark_notified(match.id) is False
        assert match_store.get(match.id).status == "notified"
        assert match_store.list_for_user("u1") == []
        assert len(match_store.list_for_user("u1", include_notified=True)) == 1

    def test_missing_match(self, match_store: MatchStore) -> None:
        assert match_store.mark_notified(999) is False


class TestSubscriberStore:
    """Tests for SubscriberStore."""

    def test_active_ids_and_profiles(self, subscriber_store: SubscriberStore) -> None:
        subscriber_store.save(SubscriberProfile(user_id="a", preferred_region="Madrid"), "active")
        subscriber_store.save(SubscriberProfile(user_id="b", preferred_region="Sevilla"), "trial")
        subscriber_store.save(SubscriberProfile(user_id="c", preferred_region="Murcia"), "cancelled")
        assert subscriber_store.list_active_subscriber_ids() == ["a", "b"]
        profiles = subscriber_store.get_profiles(["b"])
        assert [p.preferred_region for p in profiles] == ["Sevilla"]
        assert subscriber_store.get_profiles([]) == []

    def test_save_overrides(self, subscriber_store: SubscriberStore) -> None:
        subscriber_store.save(SubscriberProfile(user_id="a"), onboarding_completed=True, company_name="Acme")
        profile = subscriber_store.get_profiles(["a"])[0]
        assert profile.onboarding_completed is True
        assert profile.company_name == "Acme"

    def test_save_replaces(self, subscriber_store: SubscriberStore) -> None:
        subscriber_store.save(SubscriberProfile(user_id="a"), "active")
        subscriber_store.save(SubscriberProfile(user_id="a"), "cancelled")
        assert subscriber_store.subscription_status("a") == "cancelled"
        assert subscriber_store.list_active_subscriber_ids() == []

    def test_regions_of_interest(self, subscriber_store: SubscriberStore) -> None:
        """Union over active, onboarded subscribers, canonical names."""
        subscriber_store.save(
            SubscriberProfile(user_id="a", preferred_region="madrid", locations=["Girona"], onboarding_completed=True)
        )
        subscriber_store.save(SubscriberProfile(user_id="b", preferred_region="Sevilla", onboarding_completed=False))
        subscriber_store.save(
            SubscriberProfile(user_id="c", preferred_region="Murcia", onboarding_completed=True), "cancelled"
        )
        assert subscriber_store.regions_of_interest() == ["Gerona", "Madrid"]


class TestSyncLogStore:
    """Tests for SyncLogStore."""

    def test_start_and_finish(self, sync_log: SyncLogStore) -> None:
        run = sync_log.start_run("placsp", "manual")
        assert run.id > 0
        assert run.status == "running"
        sync_log.finish_run(
            run.id,
            regions=["Madrid"],
            records_fetched=10,
            records_new=2,
            records_updated=1,
            matches_created=3,
            metadata={"errors": [{"entry_id": "X", "message": "boom"}]},
        )
        finished = sync_log.get_run(run.id)
        assert finished.status == "completed"
        assert finished.completed_at is not None
        assert finished.regions == ["Madrid"]
        assert (finished.records_new, finished.records_updated, finished.matches_created) == (2, 1, 3)
        assert finished.metadata["errors"][0]["entry_id"] == "X"

    def test_recent_runs_newest_first(self, sync_log: SyncLogStore) -> None:
        first = sync_log.start_run("placsp")
        second = sync_log.start_run("placsp")
        assert [r.id for r in sync_log.recent_runs()] == [second.id, first.id]
        assert len(sync_log.recent_runs(limit=1)) == 1
