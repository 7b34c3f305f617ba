"""Folio: content pipeline for a personal blog."""

__version__ = "0.1.0"
