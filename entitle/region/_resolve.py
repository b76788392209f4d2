"""
Region resolution from two ambient strings.

Rules, first match wins:
    IN     Indian-language locale, or the Kolkata/Calcutta zone
    US     US English locale, or any America/* zone
    EU     any Europe/* zone
    OTHER  everything else
"""

from __future__ import annotations

from enum import Enum


class Region(Enum):
    IN = "IN"
    US = "US"
    EU = "EU"
    OTHER = "OTHER"


_INDIAN_LANGUAGES = frozenset({"hi", "bn", "te", "mr", "ta", "gu"})
_INDIAN_ZONES = frozenset({"asia/kolkata", "asia/calcutta"})


def _subtags(locale_tag: str) -> list[str]:
    return [s for s in locale_tag.strip().lower().replace("_", "-").split("-") if s]


def resolve(locale_tag: str | None, timezone_name: str | None) -> Region:
    """
    Map a BCP-47-ish locale tag and an IANA zone name to a Region.

    Never raises: unknown or empty input resolves to ``Region.OTHER``.
    """
    tags = _subtags(locale_tag or "")
    language = tags[0] if tags else ""
    zone = (timezone_name or "").strip().lower()

    if language in _INDIAN_LANGUAGES or zone in _INDIAN_ZONES:
        return Region.IN

    if (language == "en" and "us" in tags[1:]) or zone.startswith("america/"):
        return Region.US

    if zone.startswith("europe/"):
        return Region.EU

    return Region.OTHER
