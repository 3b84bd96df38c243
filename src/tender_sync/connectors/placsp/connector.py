"""PLACSP connector: official public procurement ATOM syndication feed."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from tender_sync.config import DEFAULT_FEED_URL
from tender_sync.connectors.base import BaseConnector
from tender_sync.errors import FetchError
from tender_sync.models.raw import RawEntry
from tender_sync.models.record import TenderRecord
from tender_sync.regions import canonical_region, parent_region

from .constants import (
    CONTRACT_FOLDER_ID,
    DESCRIPTION,
    ENTRY_ID,
    LINK,
    LINK_HREF,
    PROCUREMENT_PROJECT,
    PUBLISHED,
    SUMMARY,
    TITLE,
    UPDATED,
)
from .extract import extract_fields
from .parsers import (
    contract_folder,
    determine_category,
    first,
    get_path,
    map_status,
    node_text,
    parse_date,
    parse_feed,
)

logger = logging.getLogger(__name__)

UNSPECIFIED_REGION = "Unspecified"


class PlacspConnector(BaseConnector):
    """
    Connector for the Spanish public sector procurement platform.
    Fetches the complete-profiles ATOM feed and maps entries to TenderRecords.
    """

    source_id = "placsp"
    source_name = "Plataforma de Contratación del Sector Público"

    DEFAULT_HEADERS = {
        "User-Agent": "tender-sync/0.1 (procurement feed sync)",
        "Accept": "application/atom+xml, application/xml, text/xml",
    }

    def __init__(
        self,
        feed_url: str = DEFAULT_FEED_URL,
        max_entries: int = 500,
        timeout: float = 60.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            feed_url: ATOM feed URL
            max_entries: Per-run cap; entries past it are dropped until the next run
            timeout: HTTP timeout in seconds (used when no client is given)
            client: Optional httpx client
        """
        self.feed_url = feed_url
        self.max_entries = max_entries
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers=self.DEFAULT_HEADERS,
        )

    def _fetch_feed(self) -> bytes:
        """Fetch the feed document; FetchError on network, timeout or non-2xx."""
        try:
            response = self._client.get(self.feed_url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Error fetching feed {self.feed_url}: {e}") from e
        return response.content

    def fetch(self) -> list[RawEntry]:
        """Fetch and parse the feed, truncated to max_entries."""
        logger.info("Fetching feed %s", self.feed_url)
        entries = parse_feed(self._fetch_feed())
        logger.info("Feed parsed: %d entries", len(entries))
        if len(entries) > self.max_entries:
            logger.info("Processing first %d of %d entries", self.max_entries, len(entries))
            entries = entries[: self.max_entries]
        return [RawEntry(data=e) for e in entries]

    def _link(self, data: dict[str, Any]) -> Optional[str]:
        link = first(data.get(LINK))
        if isinstance(link, dict):
            href = link.get(LINK_HREF)
            return str(href).strip() if href else None
        return node_text(link)

    def normalize(self, entry: RawEntry, fetched_at: Optional[datetime] = None) -> Optional[TenderRecord]:
        """Convert a raw entry to a TenderRecord; None (logged) when mapping fails."""
        d = entry.data
        try:
            folder = contract_folder(d) or {}
            external_id = node_text(folder.get(CONTRACT_FOLDER_ID)) or node_text(d.get(ENTRY_ID))
            if not external_id:
                logger.warning("Skipping entry without identifier")
                return None

            fields = extract_fields(entry)
            summary = node_text(d.get(SUMMARY)) or ""
            description = node_text(get_path(folder, (PROCUREMENT_PROJECT, DESCRIPTION))) or summary
            published = (
                parse_date(node_text(d.get(PUBLISHED)))
                or parse_date(node_text(d.get(UPDATED)))
                or datetime.now(timezone.utc).date()
            )
            region = canonical_region(fields.region)

            return TenderRecord(
                id=f"{self.source_id}:{external_id}",
                source=self.source_id,
                external_id=external_id,
                title=node_text(d.get(TITLE)) or "Untitled",
                description=description,
                issuing_body=fields.issuing_body,
                region=region or UNSPECIFIED_REGION,
                parent_region=parent_region(region),
                category=determine_category(fields.classification_code),
                budget=fields.budget,
                publication_date=published,
                deadline=fields.deadline,
                classification_code=fields.classification_code,
                status=map_status(fields.status_code),
                source_url=self._link(d),
                is_active=True,
                fetched_at=fetched_at or datetime.now(timezone.utc),
            )
        except (TypeError, ValueError) as e:
            logger.error("Error transforming entry %s: %s", node_text(d.get(ENTRY_ID)), e)
            return None

    def health_check(self) -> dict[str, str]:
        """HEAD the feed URL; never raises."""
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            response = self._client.head(self.feed_url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return {"status": "error", "timestamp": timestamp, "error": str(e)}
        return {"status": "ok", "timestamp": timestamp, "message": "Feed reachable"}
