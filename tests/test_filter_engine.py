"""Unit tests for FilterEngine."""

from tender_sync.connectors.placsp.parsers import parse_feed
from tender_sync.filtering import FilterEngine, FilterResult
from tender_sync.models.raw import RawEntry

from tests.feeds import build_feed, make_entry


def _entry(**kwargs) -> RawEntry:
    return RawEntry(data=parse_feed(build_feed(make_entry(**kwargs)))[0])


class TestFilterEngine:
    """Tests for FilterEngine."""

    def test_filter_returns_filter_result(self) -> None:
        engine = FilterEngine("45", {"Madrid"})
        result = engine.filter(_entry())
        assert isinstance(result, FilterResult)
        assert result.passed is True
        assert len(result.explanations) == 2
        assert result.excluded_by_rule is None

    def test_sector_short_circuits(self) -> None:
        """Region rule is not evaluated once the sector rule excluded."""
        engine = FilterEngine("45", {"Madrid"})
        result = engine.filter(_entry(cpv="79000000"))
        assert result.passed is False
        assert result.excluded_by_rule == "sector"
        assert len(result.explanations) == 1

    def test_region_exclusion(self) -> None:
        engine = FilterEngine("45", {"Madrid"})
        result = engine.filter(_entry(region="Sevilla"))
        assert result.passed is False
        assert result.excluded_by_rule == "region"

    def test_two_entry_scenario(self, sample_entries: list[RawEntry]) -> None:
        """Only the in-division Madrid entry survives both filters."""
        engine = FilterEngine("45", {"Madrid"})
        passed = engine.passed_entries(engine.filter_many(sample_entries))
        assert len(passed) == 1
        assert passed[0].data == sample_entries[0].data

    def test_filter_many_keeps_all_results(self, sample_entries: list[RawEntry]) -> None:
        results = FilterEngine("45", {"Madrid"}).filter_many(sample_entries)
        assert [r.passed for r in results] == [True, False]
