"""Sync run results."""

from typing import Optional

from pydantic import BaseModel, Field


class EntryError(BaseModel):
    """Failure while processing one entry; collected, never raised."""

    entry_id: str
    message: str
    code: Optional[str] = None


class MatchSummary(BaseModel):
    """Outcome of matching a batch of records against subscribers."""

    total_matches: int = 0
    users_matched: int = 0
    matches_by_user: dict[str, int] = Field(default_factory=dict)


class SyncResult(BaseModel):
    """Counts and errors for one sync run."""

    success: bool = True
    duration: float = 0.0
    fetched: int = 0
    new: int = 0
    updated: int = 0
    matches: int = 0
    regions: list[str] = Field(default_factory=list)
    errors: list[EntryError] = Field(default_factory=list)
    message: Optional[str] = None
