"""Tests for the fetch → filter → transform pipeline."""

from datetime import datetime, timezone

from tender_sync.connectors.placsp import PlacspConnector
from tender_sync.models.raw import RawEntry
from tender_sync.pipeline import run_pipeline, transform_entries


class TestRunPipeline:
    """Tests for run_pipeline."""

    def test_two_entry_scenario(self, feed_connector: PlacspConnector) -> None:
        """Only the construction entry in Madrid comes out, with its category derived."""
        pairs, fetched = run_pipeline(feed_connector, division_prefix="45", regions_of_interest={"Madrid"})
        assert fetched == 2
        assert len(pairs) == 1
        entry, record = pairs[0]
        assert isinstance(entry, RawEntry)
        assert record.external_id == "EXP-2024/001"
        assert record.category == "Building construction"

    def test_accent_variant_region_of_interest(self, feed_connector: PlacspConnector) -> None:
        pairs, _ = run_pipeline(feed_connector, division_prefix="45", regions_of_interest={"MADRID"})
        assert len(pairs) == 1

    def test_return_filter_results(self, feed_connector: PlacspConnector) -> None:
        pairs, fetched, results = run_pipeline(
            feed_connector,
            division_prefix="45",
            regions_of_interest={"Sevilla"},
            return_filter_results=True,
        )
        assert pairs == []
        assert fetched == 2
        assert [r.excluded_by_rule for r in results] == ["region", "sector"]


class TestTransformEntries:
    """Tests for transform_entries."""

    def test_skips_untransformable(self, sample_entries: list[RawEntry]) -> None:
        fetched_at = datetime(2024, 5, 10, tzinfo=timezone.utc)
        entries = [sample_entries[0], RawEntry(data={"title": "no id"})]
        pairs = transform_entries(PlacspConnector(), entries, fetched_at=fetched_at)
        assert len(pairs) == 1
        assert pairs[0][1].fetched_at == fetched_at
