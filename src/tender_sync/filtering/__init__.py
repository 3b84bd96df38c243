"""Sector and region filtering of raw feed entries."""

from tender_sync.filtering.engine import FilterEngine, FilterResult
from tender_sync.filtering.rules import is_in_scope, matches_region

__all__ = ["FilterEngine", "FilterResult", "is_in_scope", "matches_region"]
