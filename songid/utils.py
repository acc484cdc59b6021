"""Shared utility functions."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

SPOTIFY_TRACK_URL = "https://open.spotify.com/track/{track_id}"

_YEAR_PATTERN = re.compile(r"(?<!\d)(\d{4})(?!\d)")


def compute_hash(data: bytes) -> str:
    """Compute SHA256 hex digest of an in-memory buffer."""
    return hashlib.sha256(data).hexdigest()


def sample_window(audio: bytes, max_bytes: int | None, offset: float = 0.0) -> bytes:
    """Cut a window of at most `max_bytes` out of `audio`.

    The window starts `offset` (0.0-1.0) of the way into the buffer, shifted
    back if needed so that it is always full length when the buffer allows.

    Args:
        audio: Full audio buffer
        max_bytes: Maximum window size, or None for the whole buffer
        offset: Fractional start position

    Returns:
        The (possibly truncated) buffer
    """
    if max_bytes is None or len(audio) <= max_bytes:
        return audio

    start = int(len(audio) * min(max(offset, 0.0), 1.0))
    start = min(start, len(audio) - max_bytes)
    return audio[start : start + max_bytes]


def parse_year(release_date: str | None) -> int | None:
    """Extract the year component from a release-date string ("2019-05-31" -> 2019)."""
    if not release_date:
        return None
    match = _YEAR_PATTERN.search(release_date)
    if match is None:
        return None
    return int(match.group(1))


def spotify_track_url(track_id: str | None) -> str | None:
    """Build the public Spotify URL for a track id."""
    if not track_id:
        return None
    return SPOTIFY_TRACK_URL.format(track_id=track_id)


def safe_suffix(filename: str | None) -> str:
    """Return a sanitized file extension for temporary files (".bin" if none)."""
    suffix = Path(filename or "").suffix.lower()
    suffix = "".join(c for c in suffix if c.isalnum() or c == ".")
    return suffix if len(suffix) > 1 else ".bin"
