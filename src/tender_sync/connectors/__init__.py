"""Feed connectors for procurement ingestion."""

from tender_sync.connectors.base import BaseConnector
from tender_sync.connectors.registry import ConnectorRegistry

__all__ = ["BaseConnector", "ConnectorRegistry"]
