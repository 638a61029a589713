"""Decoding of the challenge-solving proxy response envelope.

The proxy answers every request with a JSON envelope::

    {"status": "ok", "message": "...", "solution": {"response": "<html>...<pre>{json}</pre>..."}}

The browser-rendered page wraps the tracker API JSON in a ``<pre>`` block.
Decoding never raises; it returns one of three variants so the client can
decide between retrying and failing fast.
"""

import html
import json
import re
from dataclasses import dataclass
from typing import Any, Union

from pydantic import ValidationError

from .models import ScrapedProfile

SUCCESS_STATUS = "ok"

_PRE_BLOCK = re.compile(r"<pre[^>]*>(.*?)</pre>", re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class ProxySuccess:
    """Challenge solved and payload decoded."""

    profile: ScrapedProfile


@dataclass(frozen=True)
class ChallengeFailed:
    """Proxy reported a non-success solve status."""

    status: str
    message: str


@dataclass(frozen=True)
class Malformed:
    """Proxy succeeded but its payload is unusable."""

    reason: str


ProxyResult = Union[ProxySuccess, ChallengeFailed, Malformed]


def extract_pre_block(document: str) -> str | None:
    """Return the unescaped text of the first ``<pre>`` block, if any."""
    match = _PRE_BLOCK.search(document)
    if match is None:
        return None
    return html.unescape(match.group(1)).strip()


def parse_envelope(envelope: Any) -> ProxyResult:
    """Classify a decoded proxy envelope.

    :param envelope: JSON-decoded response body of the proxy
    :returns: ``ProxySuccess``, ``ChallengeFailed`` or ``Malformed``
    """
    if not isinstance(envelope, dict):
        return Malformed("proxy envelope is not a JSON object")

    status = envelope.get("status")
    if status != SUCCESS_STATUS:
        message = envelope.get("message") or f"proxy reported status {status!r}"
        return ChallengeFailed(status=str(status), message=str(message))

    solution = envelope.get("solution")
    if not isinstance(solution, dict):
        return Malformed("missing solution object")

    document = solution.get("response")
    if not isinstance(document, str) or not document:
        return Malformed("missing solution response body")

    raw_json = extract_pre_block(document)
    if raw_json is None:
        return Malformed("missing <pre> wrapper around API payload")

    try:
        payload = json.loads(raw_json)
    except json.JSONDecodeError as e:
        return Malformed(f"invalid JSON inside <pre> block: {e.msg}")

    return parse_profile_payload(payload)


def parse_profile_payload(payload: Any) -> ProxyResult:
    """Validate the tracker API JSON and build a ``ScrapedProfile``."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        errors = payload.get("errors")
        payload = payload["data"]
    else:
        errors = payload.get("errors") if isinstance(payload, dict) else None

    if not isinstance(payload, dict):
        return Malformed("API payload is not a JSON object")

    if not isinstance(payload.get("segments"), list):
        reason = "missing or invalid segments array"
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            reason = f"{reason} (upstream error: {errors[0].get('message')})"
        return Malformed(reason)

    if not isinstance(payload.get("availableSegments"), list):
        return Malformed("missing or invalid availableSegments array")

    try:
        profile = ScrapedProfile.model_validate(payload)
    except ValidationError as e:
        return Malformed(f"profile payload failed validation ({e.error_count()} errors)")

    return ProxySuccess(profile=profile)
