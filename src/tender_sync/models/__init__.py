"""Data models for feed entries, records, subscribers and matches."""

from tender_sync.models.match import Match, MatchStatus
from tender_sync.models.profile import SubscriberProfile
from tender_sync.models.raw import RawEntry
from tender_sync.models.record import ExtractedFields, RecordStatus, TenderRecord
from tender_sync.models.sync import EntryError, MatchSummary, SyncResult

__all__ = [
    "EntryError",
    "ExtractedFields",
    "Match",
    "MatchStatus",
    "MatchSummary",
    "RawEntry",
    "RecordStatus",
    "SubscriberProfile",
    "SyncResult",
    "TenderRecord",
]
