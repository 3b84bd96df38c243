"""SQLite stores for records, matches, subscribers and sync runs."""

from tender_sync.store.match_store import MatchStore
from tender_sync.store.sqlite_store import RecordStore, SyncLogStore, SyncRun
from tender_sync.store.subscriber_store import SubscriberStore

__all__ = ["MatchStore", "RecordStore", "SubscriberStore", "SyncLogStore", "SyncRun"]
