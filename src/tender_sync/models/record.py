"""Extracted fields and the persisted tender record."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordStatus(str, Enum):
    ACTIVE = "active"
    AWARDED = "awarded"
    CLOSED = "closed"


class ExtractedFields(BaseModel):
    """Fields derived from one RawEntry. Missing values are None, never errors."""

    model_config = ConfigDict(frozen=True)

    classification_code: Optional[str] = None
    region: Optional[str] = None
    budget: Optional[float] = None
    deadline: Optional[date] = None
    issuing_body: str
    status_code: str


class TenderRecord(BaseModel):
    """Canonical procurement opportunity as persisted in the record store."""

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(..., description="Deterministic ID: {source}:{external_id}")
    source: str = Field(..., description="Source system, e.g. 'placsp'")
    external_id: str = Field(..., description="Stable key from the source")

    title: str = "Untitled"
    description: str = ""
    issuing_body: str = ""
    region: str = ""
    parent_region: Optional[str] = None
    category: str = ""
    budget: Optional[float] = None
    publication_date: Optional[date] = None
    deadline: Optional[date] = None
    classification_code: Optional[str] = None
    status: RecordStatus = RecordStatus.ACTIVE
    source_url: Optional[str] = None
    is_active: bool = True

    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
