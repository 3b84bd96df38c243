"""Unit tests for field extraction from raw entries."""

from datetime import date

from tender_sync.connectors.placsp.extract import (
    extract_budget,
    extract_classification_code,
    extract_deadline,
    extract_fields,
    extract_issuing_body,
    extract_region,
    extract_status,
)
from tender_sync.connectors.placsp.parsers import parse_feed
from tender_sync.models.raw import RawEntry

from tests.feeds import build_feed, make_entry


def _entry(**kwargs) -> RawEntry:
    """RawEntry parsed from a one-entry feed."""
    return RawEntry(data=parse_feed(build_feed(make_entry(**kwargs)))[0])


class TestExtractClassificationCode:
    """Tests for extract_classification_code."""

    def test_present(self) -> None:
        assert extract_classification_code(_entry(cpv="45210000")) == "45210000"

    def test_absent(self) -> None:
        assert extract_classification_code(_entry(cpv=None)) is None

    def test_no_contract_folder(self) -> None:
        assert extract_classification_code(RawEntry(data={"title": "x"})) is None


class TestExtractRegion:
    """Tests for extract_region fallback chain."""

    def test_structured_address(self) -> None:
        assert extract_region(_entry(region="Valladolid")) == "Valladolid"

    def test_structured_code_when_no_name(self) -> None:
        """Sub-entity code is used when the address has no sub-entity name."""
        data = {
            "cac-place-ext:ContractFolderStatus": {
                "cac:ProcurementProject": {
                    "cac:RealizedLocation": {"cac:Address": {"cbc:CountrySubentityCode": "ES300"}}
                }
            }
        }
        assert extract_region(RawEntry(data=data)) == "ES300"

    def test_text_fallback(self) -> None:
        entry = _entry(region=None, title="Reforma del polideportivo de Málaga", party=None)
        assert extract_region(entry) == "Málaga"

    def test_issuing_body_fallback(self) -> None:
        entry = _entry(region=None, title="Pavimentación de calles", summary="Obras", party="Diputación Provincial de Huesca")
        assert extract_region(entry) == "Huesca"

    def test_text_fallback_matches_substring(self) -> None:
        entry = _entry(region=None, title="Obras en Madridejos", summary="", party=None)
        assert extract_region(entry) == "Madrid"

    def test_none_when_nothing_matches(self) -> None:
        entry = _entry(region=None, title="Pavimentación de calles", summary="Obras", party=None)
        assert extract_region(entry) is None


class TestExtractOtherFields:
    """Tests for budget, deadline, issuing body and status."""

    def test_budget(self) -> None:
        assert extract_budget(_entry(budget="300000")) == 300000.0

    def test_budget_unparseable(self) -> None:
        assert extract_budget(_entry(budget="n/a")) is None

    def test_budget_direct_amount(self) -> None:
        data = {"ContractFolderStatus": {"cac:ProcurementProject": {"cbc:BudgetAmount": "1500"}}}
        assert extract_budget(RawEntry(data=data)) == 1500.0

    def test_deadline(self) -> None:
        assert extract_deadline(_entry(deadline="2030-01-31")) == date(2030, 1, 31)

    def test_deadline_absent(self) -> None:
        assert extract_deadline(_entry(deadline=None)) is None

    def test_issuing_body_default(self) -> None:
        assert extract_issuing_body(_entry(party=None)) == "Not specified"

    def test_status_default(self) -> None:
        assert extract_status(_entry(status=None)) == "PUB"
        assert extract_status(_entry(status="ADJ")) == "ADJ"

    def test_extract_fields(self) -> None:
        fields = extract_fields(_entry())
        assert fields.classification_code == "45210000"
        assert fields.region == "Madrid"
        assert fields.budget == 300000.0
        assert fields.issuing_body == "Ayuntamiento de Getafe"
        assert fields.status_code == "PUB"
