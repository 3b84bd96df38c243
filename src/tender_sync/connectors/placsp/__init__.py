"""PLACSP (Spanish public sector procurement platform) feed connector."""

from tender_sync.connectors.placsp.connector import PlacspConnector

__all__ = ["PlacspConnector"]
