"""Subscriber-to-record match model."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MatchStatus(str, Enum):
    NEW = "new"
    VIEWED = "viewed"
    NOTIFIED = "notified"


# Forward-only lifecycle: status -> statuses it may move to
MATCH_TRANSITIONS: dict[str, tuple[str, ...]] = {
    MatchStatus.NEW.value: (MatchStatus.VIEWED.value, MatchStatus.NOTIFIED.value),
    MatchStatus.VIEWED.value: (MatchStatus.NOTIFIED.value,),
    MatchStatus.NOTIFIED.value: (),
}


class Match(BaseModel):
    """Scored association between one subscriber and one record."""

    model_config = ConfigDict(use_enum_values=True)

    id: Optional[int] = None
    user_id: str
    record_id: str
    score: int = Field(..., ge=0, le=100)
    reasons: list[str] = Field(default_factory=list)
    status: MatchStatus = MatchStatus.NEW
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    viewed_at: Optional[datetime] = None
    notified_at: Optional[datetime] = None
