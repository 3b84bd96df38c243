"""Subscriber profile model for matching."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class SubscriberProfile(BaseModel):
    """Matching preferences of one subscriber. Read-only input to the matcher."""

    user_id: str = Field(..., description="Unique subscriber identifier")
    company_name: Optional[str] = None

    preferred_region: Optional[str] = None
    locations: set[str] = Field(default_factory=set, description="Other regions of interest")

    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    sectors: set[str] = Field(default_factory=set, description="e.g. {'Obra civil'}")

    onboarding_completed: bool = False

    @field_validator("locations", "sectors", mode="before")
    @classmethod
    def _drop_empty(cls, value):
        if value is None:
            return set()
        return {str(v).strip() for v in value if v and str(v).strip()}

    @property
    def regions(self) -> set[str]:
        """Preferred region plus locations."""
        regions = set(self.locations)
        if self.preferred_region:
            regions.add(self.preferred_region)
        return regions

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SubscriberProfile":
        """Load profile from YAML file. Supports nested (preferences) or flat structure."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        prefs = data.get("preferences", {})

        def _get(key: str, default=None):
            return prefs.get(key, data.get(key, default))

        flat: dict = {
            "user_id": str(data.get("user_id", "default")),
            "company_name": data.get("company_name"),
            "preferred_region": _get("preferred_region"),
            "locations": _get("locations") or [],
            "budget_min": _get("budget_min"),
            "budget_max": _get("budget_max"),
            "sectors": _get("sectors") or [],
            "onboarding_completed": data.get("onboarding_completed", True),
        }
        return cls.model_validate(flat)
