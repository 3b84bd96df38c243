"""Score one record for one subscriber from the four weighted signals."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from tender_sync.models.profile import SubscriberProfile
from tender_sync.models.record import TenderRecord

from .signals import budget_signal, region_signal, sector_signal, urgency_signal

MAX_SCORE = 100


@dataclass
class ScoreResult:
    """Score of one record for one subscriber."""

    score: int  # 0-100
    reasons: list[str]


def score_record(
    record: TenderRecord,
    profile: SubscriberProfile,
    *,
    today: Optional[date] = None,
) -> ScoreResult:
    """
    Additive score over region (40), budget (30), sector (20) and
    status/deadline (10), clamped to 100. Reasons follow signal order and
    end with the total.
    """
    today = today or datetime.now(timezone.utc).date()
    signals = [
        region_signal(record, profile),
        budget_signal(record, profile),
        sector_signal(record, profile),
        urgency_signal(record, today),
    ]
    total = min(sum(points for points, _ in signals), MAX_SCORE)
    reasons = [reason for _, reason in signals if reason]
    reasons.append(f"Match score: {total}/{MAX_SCORE}")
    return ScoreResult(score=total, reasons=reasons)


def score(record: TenderRecord, profile: SubscriberProfile, *, today: Optional[date] = None) -> int:
    """Relevance score in [0, 100]."""
    return score_record(record, profile, today=today).score

