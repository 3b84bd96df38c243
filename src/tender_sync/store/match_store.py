"""Match persistence: one row per (subscriber, record) pair."""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from tender_sync.models.match import MATCH_TRANSITIONS, Match, MatchStatus

from .base import SQLiteStore

logger = logging.getLogger(__name__)


class MatchStore(SQLiteStore):
    """Stores scored matches. A pair is never matched twice."""

    def _to_match(self, row) -> Match:
        return Match(
            id=row["id"],
            user_id=row["user_id"],
            record_id=row["record_id"],
            score=row["score"],
            reasons=json.loads(row["reasons"]),
            status=row["status"],
            created_at=row["created_at"],
            viewed_at=row["viewed_at"],
            notified_at=row["notified_at"],
        )

    def exists(self, user_id: str, record_id: str) -> bool:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT 1 FROM matches WHERE user_id = ? AND record_id = ?",
                (user_id, record_id),
            ).fetchone()
        return row is not None

    def create(self, match: Match) -> Match:
        """Insert a match. PersistenceError if the pair already exists."""
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO matches (user_id, record_id, score, reasons, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    match.user_id,
                    match.record_id,
                    match.score,
                    json.dumps(match.reasons, ensure_ascii=False),
                    match.status,
                    match.created_at.isoformat(),
                ),
            )
            match_id = cursor.lastrowid
        return match.model_copy(update={"id": match_id})

    def get(self, match_id: int) -> Optional[Match]:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM matches WHERE id = ?", (match_id,)).fetchone()
        return self._to_match(row) if row else None

    def list_for_user(self, user_id: str, include_notified: bool = False) -> list[Match]:
        """Open matches for a subscriber, best score first, newest first within a score."""
        statuses = [MatchStatus.NEW.value, MatchStatus.VIEWED.value]
        if include_notified:
            statuses.append(MatchStatus.NOTIFIED.value)
        placeholders = ", ".join("?" for _ in statuses)
        with self._transaction() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM matches
                WHERE user_id = ? AND status IN ({placeholders})
                ORDER BY score DESC, created_at DESC
                """,
                (user_id, *statuses),
            ).fetchall()
        return [self._to_match(r) for r in rows]

    def count(self, user_id: Optional[str] = None) -> int:
        sql = "SELECT COUNT(*) FROM matches"
        params: tuple = ()
        if user_id is not None:
            sql += " WHERE user_id = ?"
            params = (user_id,)
        with self._transaction() as conn:
            return conn.execute(sql, params).fetchone()[0]

    def _transition(self, match_id: int, target: MatchStatus, column: str, user_id: Optional[str] = None) -> bool:
        match = self.get(match_id)
        if match is None or (user_id is not None and match.user_id != user_id):
            return False
        if target.value not in MATCH_TRANSITIONS[match.status]:
            logger.debug("Match %s: %s -> %s not allowed", match_id, match.status, target.value)
            return False
        with self._transaction() as conn:
            conn.execute(
                f"UPDATE matches SET status = ?, {column} = ? WHERE id = ?",
                (target.value, datetime.now(timezone.utc).isoformat(), match_id),
            )
        return True

    def mark_viewed(self, match_id: int, user_id: str) -> bool:
        """Move a subscriber's match to viewed. False if missing, not theirs, or not new."""
        return self._transition(match_id, MatchStatus.VIEWED, "viewed_at", user_id=user_id)

    def mark_notified(self, match_id: int) -> bool:
        """Move a match to notified. False if missing or already notified."""
        return self._transition(match_id, MatchStatus.NOTIFIED, "notified_at")
