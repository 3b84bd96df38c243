"""Filter engine for raw feed entries, with explanation trail."""

import logging
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from tender_sync.models.raw import RawEntry
from tender_sync.regions import normalize_region_set

from .rules import apply_region_rule, apply_sector_rule

logger = logging.getLogger(__name__)


class FilterResult(BaseModel):
    """Result of filtering one entry."""

    passed: bool = Field(..., description="All rules passed")
    explanations: list[str] = Field(default_factory=list)
    entry: RawEntry = Field(..., description="The entry that was filtered")
    excluded_by_rule: Optional[str] = Field(
        default=None,
        description="First rule that excluded (sector|region)",
    )


class FilterEngine:
    """
    Applies the sector rule, then the region rule, to raw entries.
    Binary inclusion: an entry passes only if both rules pass; the region
    rule is not evaluated once the sector rule has excluded.
    """

    def __init__(self, division_prefix: str, regions_of_interest: Iterable[str]):
        self.division_prefix = division_prefix
        self.regions_of_interest = normalize_region_set(regions_of_interest)

    def filter(self, entry: RawEntry) -> FilterResult:
        """Apply rules in order and return FilterResult with explanation trail."""
        explanations: list[str] = []
        for passed, explanation, rule_id in self._evaluate(entry):
            explanations.append(explanation)
            if not passed:
                return FilterResult(
                    passed=False,
                    explanations=explanations,
                    entry=entry,
                    excluded_by_rule=rule_id,
                )
        return FilterResult(passed=True, explanations=explanations, entry=entry)

    def _evaluate(self, entry: RawEntry):
        yield apply_sector_rule(entry, self.division_prefix)
        yield apply_region_rule(entry, self.regions_of_interest)

    def filter_many(self, entries: list[RawEntry]) -> list[FilterResult]:
        """Filter multiple entries; returns all with full results."""
        return [self.filter(e) for e in entries]

    def passed_entries(self, results: list[FilterResult]) -> list[RawEntry]:
        """Entries of the results that passed; logs how many each rule kept."""
        in_sector = sum(1 for r in results if r.excluded_by_rule != "sector")
        passed = [r.entry for r in results if r.passed]
        logger.info(
            "Filtered %d entries: %d in division %s, %d in regions of interest",
            len(results),
            in_sector,
            self.division_prefix,
            len(passed),
        )
        return passed
