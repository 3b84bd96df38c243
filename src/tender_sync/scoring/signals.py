"""The four additive relevance signals. Each returns (points, reason or None)."""

from datetime import date
from typing import Optional

from tender_sync.matching import matching_sector
from tender_sync.models.profile import SubscriberProfile
from tender_sync.models.record import RecordStatus, TenderRecord
from tender_sync.regions import normalize_region, normalize_region_set

REGION_EXACT = 40
REGION_BASE = 10

BUDGET_IN_RANGE = 30
BUDGET_NEAR_RANGE = 20
BUDGET_OUT_OF_RANGE = 5
BUDGET_NO_RANGE = 15
BUDGET_UNKNOWN = 10
# Near range: [min * 0.5, max * 2]
NEAR_LOWER_FACTOR = 0.5
NEAR_UPPER_FACTOR = 2

SECTOR_MATCH = 20
SECTOR_RELATED = 10
SECTOR_UNDECLARED = 15

STATUS_ACTIVE = 5
DEADLINE_AMPLE = 5
DEADLINE_MODERATE = 3
AMPLE_DAYS = 15
MODERATE_DAYS = 7

Signal = tuple[int, Optional[str]]


def region_signal(record: TenderRecord, profile: SubscriberProfile) -> Signal:
    region = normalize_region(record.region)
    if region and region == normalize_region(profile.preferred_region):
        return REGION_EXACT, f"Location: {record.region} (your preferred region)"
    if region and region in normalize_region_set(profile.locations):
        return REGION_EXACT, f"Location: {record.region} (in your locations)"
    return REGION_BASE, None


def budget_signal(record: TenderRecord, profile: SubscriberProfile) -> Signal:
    budget = record.budget
    if budget is None:
        return BUDGET_UNKNOWN, None
    low, high = profile.budget_min, profile.budget_max
    if low is None or high is None:
        return BUDGET_NO_RANGE, None
    if low <= budget <= high:
        return BUDGET_IN_RANGE, f"Budget: €{budget:,.0f} (within your range)"
    if low * NEAR_LOWER_FACTOR <= budget <= high * NEAR_UPPER_FACTOR:
        return BUDGET_NEAR_RANGE, f"Budget: €{budget:,.0f} (close to your range)"
    return BUDGET_OUT_OF_RANGE, None


def sector_signal(record: TenderRecord, profile: SubscriberProfile) -> Signal:
    if not profile.sectors:
        return SECTOR_UNDECLARED, None
    sector = matching_sector(profile.sectors, record.title, record.category)
    if sector:
        return SECTOR_MATCH, f"Sector: {record.category} (matches {sector})"
    return SECTOR_RELATED, f"Sector: {record.category}"


def days_until(deadline: date, today: date) -> int:
    return (deadline - today).days


def urgency_signal(record: TenderRecord, today: date) -> Signal:
    points = STATUS_ACTIVE if record.status == RecordStatus.ACTIVE.value else 0
    if record.deadline is None:
        return points, None
    days = days_until(record.deadline, today)
    if days > AMPLE_DAYS:
        points += DEADLINE_AMPLE
    elif days >= MODERATE_DAYS:
        points += DEADLINE_MODERATE
    reason = f"Deadline: {days} days to submit" if days >= 0 else None
    return points, reason
