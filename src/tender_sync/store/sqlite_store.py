"""SQLite-backed record store, raw audit trail and sync run history."""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from tender_sync.errors import PersistenceError, RawPersistenceError
from tender_sync.models.record import TenderRecord

from .base import SQLiteStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class RecordStore(SQLiteStore):
    """
    SQLite store for tender records.
    (source, external_id) is unique; an existing record is updated in place.
    """

    def _serialize(self, record: TenderRecord) -> str:
        data = record.model_dump(mode="json", exclude={"created_at", "updated_at"})
        return json.dumps(data, default=str)

    def _deserialize(self, row) -> TenderRecord:
        data = json.loads(row["data"])
        data["created_at"] = row["created_at"]
        data["updated_at"] = row["updated_at"]
        return TenderRecord.model_validate(data)

    def _write_params(self, record: TenderRecord) -> tuple:
        return (
            record.status,
            record.region,
            record.deadline.isoformat() if record.deadline else None,
            int(record.is_active),
            self._serialize(record),
        )

    def find_by_external_id(self, external_id: str, source: str = "placsp") -> Optional[TenderRecord]:
        """Record with the given source key, or None."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM records WHERE source = ? AND external_id = ?",
                (source, external_id),
            ).fetchone()
        return self._deserialize(row) if row else None

    def get(self, record_id: str) -> Optional[TenderRecord]:
        """Get single record by id."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM records WHERE id = ?", (record_id,)).fetchone()
        return self._deserialize(row) if row else None

    def insert(self, record: TenderRecord) -> TenderRecord:
        """
        Insert a new record. Keeps created_at/updated_at when the record
        carries them, otherwise stamps now. PersistenceError on duplicates.
        """
        now = _utcnow()
        stored = record.model_copy(
            update={
                "created_at": record.created_at or now,
                "updated_at": record.updated_at or now,
            }
        )
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO records (status, region, deadline, is_active, data, id, source, external_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    *self._write_params(stored),
                    stored.id,
                    stored.source,
                    stored.external_id,
                    stored.created_at.isoformat(),
                    stored.updated_at.isoformat(),
                ),
            )
        return stored

    def update(self, record_id: str, changes: dict[str, Any]) -> TenderRecord:
        """Merge changes into an existing record and stamp updated_at."""
        existing = self.get(record_id)
        if existing is None:
            raise PersistenceError(f"Record not found: {record_id}", code="NotFound")
        protected = {"id", "source", "external_id", "created_at", "updated_at"}
        merged = existing.model_dump()
        merged.update({k: v for k, v in changes.items() if k not in protected})
        merged["updated_at"] = _utcnow()
        updated = TenderRecord.model_validate(merged)
        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE records SET status = ?, region = ?, deadline = ?, is_active = ?, data = ?, updated_at = ?
                WHERE id = ?
                """,
                (*self._write_params(updated), updated.updated_at.isoformat(), record_id),
            )
        return updated

    def insert_raw(self, source: str, external_id: str, fetched_at: datetime, payload: dict[str, Any]) -> None:
        """Append a raw entry to the audit trail. Raises RawPersistenceError on failure."""
        try:
            body = json.dumps(payload, default=str, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise RawPersistenceError(f"Unserializable raw payload: {e}", code=type(e).__name__) from e
        with self._transaction(RawPersistenceError) as conn:
            conn.execute(
                "INSERT INTO records_raw (source, external_id, fetched_at, payload) VALUES (?, ?, ?, ?)",
                (source, external_id, fetched_at.isoformat(), body),
            )

    def raw_count(self, external_id: Optional[str] = None) -> int:
        """Number of raw audit rows, optionally for one external id."""
        sql = "SELECT COUNT(*) FROM records_raw"
        params: tuple = ()
        if external_id is not None:
            sql += " WHERE external_id = ?"
            params = (external_id,)
        with self._transaction() as conn:
            return conn.execute(sql, params).fetchone()[0]

    def query(
        self,
        *,
        status: Optional[str] = None,
        region: Optional[str] = None,
        is_active: Optional[bool] = True,
        external_ids: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
    ) -> list[TenderRecord]:
        """Records matching all given filters, most recently updated first."""
        clauses: list[str] = []
        params: list[Any] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status)
        if region is not None:
            clauses.append("region = ?")
            params.append(region)
        if is_active is not None:
            clauses.append("is_active = ?")
            params.append(int(is_active))
        if external_ids is not None:
            ids = list(external_ids)
            if not ids:
                return []
            clauses.append(f"external_id IN ({', '.join('?' for _ in ids)})")
            params.extend(ids)
        sql = "SELECT * FROM records"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY updated_at DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self._transaction() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._deserialize(r) for r in rows]

    def deactivate_closed_before(self, cutoff: date) -> int:
        """Mark closed records whose deadline precedes cutoff as inactive. Returns count."""
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT id FROM records
                WHERE status = 'closed' AND is_active = 1 AND deadline IS NOT NULL AND deadline < ?
                """,
                (cutoff.isoformat(),),
            ).fetchall()
        for row in rows:
            self.update(row["id"], {"is_active": False})
        return len(rows)


@dataclass
class SyncRun:
    """Record of a sync run."""

    id: int
    source: str
    sync_type: str
    started_at: datetime
    status: str
    completed_at: Optional[datetime] = None
    regions: list[str] = field(default_factory=list)
    records_fetched: int = 0
    records_new: int = 0
    records_updated: int = 0
    matches_created: int = 0
    error_message: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


class SyncLogStore(SQLiteStore):
    """Run history: status, counts, duration and an error sample per run."""

    def _to_run(self, row) -> SyncRun:
        return SyncRun(
            id=row["id"],
            source=row["source"],
            sync_type=row["sync_type"],
            started_at=_parse_ts(row["started_at"]),
            completed_at=_parse_ts(row["completed_at"]),
            status=row["status"],
            regions=json.loads(row["regions"] or "[]"),
            records_fetched=row["records_fetched"],
            records_new=row["records_new"],
            records_updated=row["records_updated"],
            matches_created=row["matches_created"],
            error_message=row["error_message"],
            metadata=json.loads(row["metadata"] or "{}"),
        )

    def start_run(self, source: str, sync_type: str = "scheduled") -> SyncRun:
        """Record start of a sync run. Returns SyncRun with id."""
        now = _utcnow()
        with self._transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO sync_runs (source, sync_type, started_at, status) VALUES (?, ?, ?, 'running')",
                (source, sync_type, now.isoformat()),
            )
            run_id = cursor.lastrowid
        return SyncRun(id=run_id or 0, source=source, sync_type=sync_type, started_at=now, status="running")

    def finish_run(
        self,
        run_id: int,
        *,
        status: str = "completed",
        regions: Optional[list[str]] = None,
        records_fetched: int = 0,
        records_new: int = 0,
        records_updated: int = 0,
        matches_created: int = 0,
        error_message: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Record completion (or failure) of a sync run."""
        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE sync_runs SET completed_at = ?, status = ?, regions = ?, records_fetched = ?,
                    records_new = ?, records_updated = ?, matches_created = ?, error_message = ?, metadata = ?
                WHERE id = ?
                """,
                (
                    _utcnow().isoformat(),
                    status,
                    json.dumps(regions or []),
                    records_fetched,
                    records_new,
                    records_updated,
                    matches_created,
                    error_message,
                    json.dumps(metadata or {}, default=str),
                    run_id,
                ),
            )

    def get_run(self, run_id: int) -> Optional[SyncRun]:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM sync_runs WHERE id = ?", (run_id,)).fetchone()
        return self._to_run(row) if row else None

    def recent_runs(self, limit: int = 10) -> list[SyncRun]:
        """Most recent runs first."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM sync_runs ORDER BY started_at DESC, id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [self._to_run(r) for r in rows]
