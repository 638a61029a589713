"""Error isolation for scrape steps.

Scrape steps that may fail on their own (one historical season, one tracker in a
batch) are wrapped so a failure is logged with its proxy context and, when the
step is not critical, turned into ``None`` for the caller to skip.

- ``ConfigurationError``: always re-raised, no later step can succeed either
- Transient proxy errors: logged at warning level
- Everything else: logged at error level
- Re-raised when ``critical=True``, swallowed otherwise
"""

import inspect
from functools import wraps
from typing import Any, Callable, Dict, Optional, ParamSpec, TypeVar

import structlog

from trackerhub.core.flaresolverr.errors import ConfigurationError, ScraperProxyError

logger = structlog.get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

LogContext = Callable[..., Dict[str, Any]]


def handle_scraper_errors(
    *,
    operation: str,
    critical: bool = True,
    log_context: Optional[LogContext] = None,
):
    """Decorator giving a scrape step consistent failure handling.

    :param operation: Short description used in log events (e.g. "scrape season")
    :param critical: Re-raise after logging; False returns None instead
    :param log_context: Builds extra log fields from the call arguments,
                        e.g. ``lambda self, url, season_number: {"season": season_number}``

    Usage example::

        @handle_scraper_errors(
            operation="scrape season",
            critical=False,
            log_context=lambda self, url, season_number: {"season": season_number},
        )
        async def _scrape_season_isolated(self, url: str, season_number: int):
            ...
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except Exception as error:
                    _report(error, operation, critical, _context(log_context, args, kwargs, func))
                    return None

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as error:
                _report(error, operation, critical, _context(log_context, args, kwargs, func))
                return None

        return sync_wrapper

    return decorator


def _context(
    log_context: Optional[LogContext], args: tuple, kwargs: dict, func: Callable
) -> Dict[str, Any]:
    if log_context is None:
        return {}
    try:
        return log_context(*args, **kwargs)
    except Exception as e:
        logger.warning(
            "Failed to extract log context", error=str(e), function=func.__name__
        )
        return {}


def _error_fields(error: Exception) -> Dict[str, Any]:
    fields: Dict[str, Any] = {"error": str(error), "error_type": type(error).__name__}
    if isinstance(error, ScraperProxyError):
        fields["status_code"] = error.status_code
        fields["retryable"] = error.retryable
    return fields


def _report(
    error: Exception, operation: str, critical: bool, context: Dict[str, Any]
) -> None:
    """Log ``error`` and re-raise it unless the step may be skipped."""
    fields = {**_error_fields(error), **context}

    if isinstance(error, ConfigurationError):
        logger.error(f"Proxy misconfigured during {operation}, cannot continue", **fields)
        raise error

    if isinstance(error, ScraperProxyError) and error.retryable:
        logger.warning(f"Transient failure during {operation}", **fields)
    else:
        logger.error(f"Failed to {operation}", **fields)

    if critical:
        raise error
