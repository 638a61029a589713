"""Job execution helpers."""

from .error_handling import handle_scraper_errors

__all__ = ["handle_scraper_errors"]
