"""Sync orchestration: fetch, filter, transform, reconcile with the store, match."""

import calendar
import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from tender_sync.config import Settings
from tender_sync.connectors.base import BaseConnector
from tender_sync.errors import PersistenceError, RawPersistenceError
from tender_sync.models.raw import RawEntry
from tender_sync.models.record import TenderRecord
from tender_sync.models.sync import EntryError, MatchSummary, SyncResult
from tender_sync.pipeline import run_pipeline
from tender_sync.scoring.engine import MatchingEngine
from tender_sync.store.match_store import MatchStore
from tender_sync.store.sqlite_store import RecordStore, SyncLogStore
from tender_sync.store.subscriber_store import SubscriberStore

logger = logging.getLogger(__name__)

# Sample of per-entry errors kept in the sync log
MAX_LOGGED_ERRORS = 10

# Fields a newer feed entry may overwrite on an existing record
_IDENTITY_FIELDS = {"id", "source", "external_id", "created_at", "updated_at"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def months_before(day: date, months: int) -> date:
    """Same day of month `months` months earlier, clamped to month end."""
    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    last = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(day.day, last))


class SyncService:
    """
    One sync run end to end. All collaborators are passed in; nothing is
    shared at module level.
    """

    def __init__(
        self,
        connector: BaseConnector,
        record_store: RecordStore,
        subscriber_store: SubscriberStore,
        match_store: MatchStore,
        sync_log: SyncLogStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.connector = connector
        self.record_store = record_store
        self.subscriber_store = subscriber_store
        self.match_store = match_store
        self.sync_log = sync_log
        self.settings = settings or Settings()
        self.clock = clock
        self.matching = MatchingEngine(
            subscriber_store,
            match_store,
            threshold=self.settings.match_threshold,
            active_statuses=self.settings.active_statuses,
        )

    @property
    def staleness(self) -> timedelta:
        return timedelta(hours=self.settings.staleness_hours)

    def run_sync(self, sync_type: str = "scheduled") -> SyncResult:
        """
        Run one sync. Per-entry failures are collected in the result;
        run-level failures are recorded in the sync log and re-raised.
        """
        started = time.perf_counter()
        run = self.sync_log.start_run(self.connector.source_id, sync_type)
        logger.info("Sync run %s started (%s)", run.id, sync_type)
        try:
            regions = self.subscriber_store.regions_of_interest(self.settings.active_statuses)
            if not regions:
                logger.info("No regions of interest; nothing to sync")
                duration = time.perf_counter() - started
                self.sync_log.finish_run(run.id, status="completed", metadata={"duration": duration})
                return SyncResult(duration=duration, message="No active subscribers with regions of interest")

            logger.info("Regions of interest: %s", ", ".join(regions))
            now = self.clock()
            pairs, fetched = run_pipeline(
                self.connector,
                division_prefix=self.settings.division_prefix,
                regions_of_interest=regions,
                fetched_at=now,
            )
            new, updated, errors = self.process_records(pairs, now=now)
            summary = self._match(pairs, new + updated, today=now.date())
        except Exception as e:
            duration = time.perf_counter() - started
            logger.error("Sync run %s failed: %s", run.id, e)
            self.sync_log.finish_run(
                run.id,
                status="error",
                error_message=str(e),
                metadata={"duration": duration},
            )
            raise

        duration = time.perf_counter() - started
        self.sync_log.finish_run(
            run.id,
            status="completed",
            regions=regions,
            records_fetched=fetched,
            records_new=len(new),
            records_updated=len(updated),
            matches_created=summary.total_matches,
            metadata={
                "duration": duration,
                "error_count": len(errors),
                "errors": [e.model_dump() for e in errors[:MAX_LOGGED_ERRORS]],
                "matches": summary.model_dump(),
            },
        )
        logger.info(
            "Sync run %s completed in %.2fs: %d fetched, %d new, %d updated, %d matches, %d errors",
            run.id,
            duration,
            fetched,
            len(new),
            len(updated),
            summary.total_matches,
            len(errors),
        )
        return SyncResult(
            duration=duration,
            fetched=fetched,
            new=len(new),
            updated=len(updated),
            matches=summary.total_matches,
            regions=regions,
            errors=errors,
        )

    def process_records(
        self,
        pairs: list[tuple[RawEntry, TenderRecord]],
        now: Optional[datetime] = None,
    ) -> tuple[list[TenderRecord], list[TenderRecord], list[EntryError]]:
        """
        Insert unseen records; update known ones only once they are older
        than the staleness window. Returns (new, updated, errors).
        """
        now = now or self.clock()
        new: list[TenderRecord] = []
        updated: list[TenderRecord] = []
        errors: list[EntryError] = []
        for entry, record in pairs:
            try:
                existing = self.record_store.find_by_external_id(record.external_id, record.source)
                if existing is None:
                    new.append(self.record_store.insert(record))
                elif existing.updated_at is None or now - existing.updated_at >= self.staleness:
                    changes = record.model_dump(exclude=_IDENTITY_FIELDS)
                    updated.append(self.record_store.update(existing.id, changes))
                else:
                    logger.debug("Record %s updated recently, skipping", existing.id)
            except PersistenceError as e:
                logger.error("Error processing entry %s: %s", record.external_id, e)
                errors.append(EntryError(entry_id=record.external_id, message=str(e), code=e.code))
            self._save_raw(entry, record, now)
        return new, updated, errors

    def _save_raw(self, entry: RawEntry, record: TenderRecord, fetched_at: datetime) -> None:
        try:
            self.record_store.insert_raw(record.source, record.external_id, fetched_at, entry.data)
        except RawPersistenceError as e:
            logger.warning("Could not save raw entry %s: %s", record.external_id, e)

    def _match(
        self,
        pairs: list[tuple[RawEntry, TenderRecord]],
        changed: list[TenderRecord],
        today: date,
    ) -> MatchSummary:
        if changed:
            return self.matching.match_all(changed, today=today)
        if not pairs:
            return MatchSummary()
        # Nothing changed: re-check the persisted records the feed still lists
        external_ids = [record.external_id for _, record in pairs]
        existing = self.record_store.query(external_ids=external_ids, is_active=True)
        logger.info("No new or updated records; re-matching %d existing records", len(existing))
        return self.matching.match_all(existing, today=today)

    def cleanup_old_records(self, months: int = 6) -> int:
        """Deactivate closed records whose deadline is more than `months` months past."""
        cutoff = months_before(self.clock().date(), months)
        count = self.record_store.deactivate_closed_before(cutoff)
        logger.info("Deactivated %d closed records with deadline before %s", count, cutoff)
        return count
