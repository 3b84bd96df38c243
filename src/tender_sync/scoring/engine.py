"""Match new and updated records against active subscribers."""

import logging
from collections import Counter
from datetime import date
from typing import Iterable, Optional

from tender_sync.errors import PersistenceError
from tender_sync.models.match import Match
from tender_sync.models.profile import SubscriberProfile
from tender_sync.models.record import TenderRecord
from tender_sync.models.sync import MatchSummary
from tender_sync.regions import normalize_region, normalize_region_set
from tender_sync.store.match_store import MatchStore
from tender_sync.store.subscriber_store import DEFAULT_ACTIVE_STATUSES, SubscriberStore

from .scorer import score_record

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 60


class MatchingEngine:
    """
    Scores each record for every candidate subscriber and stores a match
    when the score reaches the threshold. Candidates are active, onboarded
    subscribers whose preferred region or locations include the record's
    region. A (subscriber, record) pair is matched at most once.
    """

    def __init__(
        self,
        subscriber_store: SubscriberStore,
        match_store: MatchStore,
        threshold: int = DEFAULT_THRESHOLD,
        active_statuses: Iterable[str] = DEFAULT_ACTIVE_STATUSES,
    ):
        self.subscriber_store = subscriber_store
        self.match_store = match_store
        self.threshold = threshold
        self.active_statuses = tuple(active_statuses)

    def load_profiles(self) -> list[SubscriberProfile]:
        """Active subscribers that completed onboarding."""
        ids = self.subscriber_store.list_active_subscriber_ids(self.active_statuses)
        return [p for p in self.subscriber_store.get_profiles(ids) if p.onboarding_completed]

    def candidates_for(self, record: TenderRecord, profiles: list[SubscriberProfile]) -> list[SubscriberProfile]:
        region = normalize_region(record.region)
        if not region:
            return []
        return [p for p in profiles if region in normalize_region_set(p.regions)]

    def match_record(
        self,
        record: TenderRecord,
        profiles: list[SubscriberProfile],
        *,
        today: Optional[date] = None,
    ) -> list[Match]:
        """Create matches for one record; returns the matches created."""
        created: list[Match] = []
        for profile in self.candidates_for(record, profiles):
            if self.match_store.exists(profile.user_id, record.id):
                continue
            result = score_record(record, profile, today=today)
            if result.score < self.threshold:
                continue
            match = self._create(
                Match(
                    user_id=profile.user_id,
                    record_id=record.id,
                    score=result.score,
                    reasons=result.reasons,
                )
            )
            if match is not None:
                created.append(match)
        return created

    def _create(self, match: Match) -> Optional[Match]:
        try:
            return self.match_store.create(match)
        except PersistenceError as e:
            logger.error("Error creating match %s/%s: %s", match.user_id, match.record_id, e)
            return None

    def match_all(self, records: list[TenderRecord], *, today: Optional[date] = None) -> MatchSummary:
        """Match a batch of records. A failure on one record does not stop the batch."""
        if not records:
            return MatchSummary()
        profiles = self.load_profiles()
        if not profiles:
            logger.info("No active subscribers to match against")
            return MatchSummary()

        by_user: Counter[str] = Counter()
        for record in records:
            try:
                for match in self.match_record(record, profiles, today=today):
                    by_user[match.user_id] += 1
            except PersistenceError as e:
                logger.error("Error matching record %s: %s", record.id, e)

        total = sum(by_user.values())
        logger.info("Created %d matches for %d subscribers", total, len(by_user))
        return MatchSummary(
            total_matches=total,
            users_matched=len(by_user),
            matches_by_user=dict(by_user),
        )
