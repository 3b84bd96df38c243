"""Procurement feed sync: extract, filter, persist and match tenders."""

__version__ = "0.1.0"
