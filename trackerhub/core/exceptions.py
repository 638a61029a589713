"""Service-level exceptions shared across features."""

from typing import Any, Dict, Optional


class ServiceException(Exception):
    """Base exception for service layer errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class TrackerNotFoundError(ServiceException):
    """Tracker does not exist or has been soft-deleted."""

    def __init__(self, tracker_id: str) -> None:
        super().__init__(f"Tracker {tracker_id} not found", {"tracker_id": tracker_id})
        self.tracker_id = tracker_id


class DatabaseError(ServiceException):
    """Persistence operation failed."""

    pass
