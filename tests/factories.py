"""Builders for tracker API payloads and proxy envelopes."""

import html
import json
from typing import Any, Dict, List, Optional


def stat(value: Any, name: Optional[str] = None) -> Dict[str, Any]:
    """Tracker stat object as returned by the tracker API."""
    result: Dict[str, Any] = {"value": value}
    if name is not None:
        result["metadata"] = {"name": name}
    return result


def playlist_segment(
    playlist_id: int,
    season: int,
    tier: Any = 22,
    tier_name: Optional[str] = "Supersonic Legend",
    division: Any = 1,
    division_name: Optional[str] = "Division II",
    rating: Any = 1721,
    matches_played: Any = 62,
    win_streak: Any = 11,
) -> Dict[str, Any]:
    return {
        "type": "playlist",
        "attributes": {"playlistId": playlist_id, "season": season},
        "metadata": {"name": f"Playlist {playlist_id}"},
        "stats": {
            "tier": stat(tier, tier_name),
            "division": stat(division, division_name),
            "rating": stat(rating),
            "matchesPlayed": stat(matches_played),
            "winStreak": stat(win_streak),
        },
    }


def available_segment(season: int, name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "type": "playlist",
        "attributes": {"season": season},
        "metadata": {"name": name or f"Season {season} ({2020 + season})"},
    }


def profile_payload(
    segments: List[Dict[str, Any]],
    available: List[Dict[str, Any]],
    current_season: int = 34,
) -> Dict[str, Any]:
    return {
        "platformInfo": {
            "platformSlug": "steam",
            "platformUserId": "76561198051701160",
            "platformUserHandle": "SomePlayer",
        },
        "userInfo": {"userId": 12345, "isPremium": False},
        "metadata": {"lastUpdated": {"value": "2025-11-20T10:00:00Z"}, "currentSeason": current_season},
        "segments": segments,
        "availableSegments": available,
    }


def proxy_envelope(payload: Any, wrap_in_data: bool = True) -> Dict[str, Any]:
    """FlareSolverr success envelope embedding ``payload`` in a <pre> block."""
    body = {"data": payload} if wrap_in_data else payload
    document = (
        "<html><head></head><body><pre>"
        + html.escape(json.dumps(body), quote=False)
        + "</pre></body></html>"
    )
    return {
        "status": "ok",
        "message": "Challenge not detected!",
        "solution": {"url": "https://api.tracker.gg/...", "status": 200, "response": document},
    }


