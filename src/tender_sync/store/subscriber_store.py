"""Subscriber profiles and subscription state."""

import json
from datetime import datetime, timezone
from typing import Iterable, Optional

from tender_sync.models.profile import SubscriberProfile
from tender_sync.regions import canonical_region

from .base import SQLiteStore

DEFAULT_ACTIVE_STATUSES = ("trial", "active")


class SubscriberStore(SQLiteStore):
    """
    Read side of the subscriber directory used by sync and matching.
    save() exists so profiles can be registered from the CLI and tests.
    """

    def save(
        self,
        profile: SubscriberProfile,
        subscription_status: str = "active",
        onboarding_completed: Optional[bool] = None,
        company_name: Optional[str] = None,
    ) -> SubscriberProfile:
        """Insert or replace a subscriber profile. Keyword overrides win over profile fields."""
        updates = {}
        if onboarding_completed is not None:
            updates["onboarding_completed"] = onboarding_completed
        if company_name is not None:
            updates["company_name"] = company_name
        if updates:
            profile = profile.model_copy(update=updates)
        data = profile.model_dump(mode="json")
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO subscribers (user_id, subscription_status, onboarding_completed, data, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    subscription_status = excluded.subscription_status,
                    onboarding_completed = excluded.onboarding_completed,
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (
                    profile.user_id,
                    subscription_status,
                    int(profile.onboarding_completed),
                    json.dumps(data, ensure_ascii=False),
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
        return profile

    def subscription_status(self, user_id: str) -> Optional[str]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT subscription_status FROM subscribers WHERE user_id = ?", (user_id,)
            ).fetchone()
        return row["subscription_status"] if row else None

    def list_active_subscriber_ids(self, statuses: Iterable[str] = DEFAULT_ACTIVE_STATUSES) -> list[str]:
        """IDs of subscribers whose subscription status is one of statuses."""
        wanted = list(statuses)
        if not wanted:
            return []
        placeholders = ", ".join("?" for _ in wanted)
        with self._transaction() as conn:
            rows = conn.execute(
                f"SELECT user_id FROM subscribers WHERE subscription_status IN ({placeholders}) ORDER BY user_id",
                wanted,
            ).fetchall()
        return [r["user_id"] for r in rows]

    def get_profiles(self, user_ids: Optional[Iterable[str]] = None) -> list[SubscriberProfile]:
        """Profiles for the given ids (all subscribers when None)."""
        sql = "SELECT data FROM subscribers"
        params: list[str] = []
        if user_ids is not None:
            params = list(user_ids)
            if not params:
                return []
            sql += f" WHERE user_id IN ({', '.join('?' for _ in params)})"
        sql += " ORDER BY user_id"
        with self._transaction() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [SubscriberProfile.model_validate(json.loads(r["data"])) for r in rows]

    def regions_of_interest(self, statuses: Iterable[str] = DEFAULT_ACTIVE_STATUSES) -> list[str]:
        """
        Union of preferred_region and locations over active, onboarded
        subscribers. Canonical names where the gazetteer knows the region.
        """
        ids = self.list_active_subscriber_ids(statuses)
        regions: set[str] = set()
        for profile in self.get_profiles(ids):
            if not profile.onboarding_completed:
                continue
            for region in profile.regions:
                regions.add(canonical_region(region) or region.strip())
        return sorted(r for r in regions if r)
