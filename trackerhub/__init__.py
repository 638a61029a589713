"""Tracker ingestion service: anti-bot scraping, season normalization and batch scheduling."""

__version__ = "0.1.0"
