"""Synthetic results used when no real provider can answer.

Neither function identifies anything. Both results carry `synthetic=True`
so callers can tell them apart from provider matches.
"""

from __future__ import annotations

import numpy as np

from ..utils import compute_hash
from .models import NormalizedTrack

PLACEHOLDER_PROVIDER = "placeholder"
HEURISTIC_PROVIDER = "heuristic"

PLACEHOLDER_TITLE = "Demo Track (no recognition provider configured)"
PLACEHOLDER_ARTIST = "SongID Demo"
PLACEHOLDER_SCORE = 50.0

HEURISTIC_MAX_SCORE = 70.0
HEURISTIC_MIN_SCORE = 40.0

# (genre, title, artist)
GENRE_GUESSES: tuple[tuple[str, str, str], ...] = (
    ("Electronic", "Unidentified Electronic Track", "Unknown Electronic Artist"),
    ("Rock", "Unidentified Rock Track", "Unknown Rock Artist"),
    ("Hip-Hop", "Unidentified Hip-Hop Track", "Unknown Hip-Hop Artist"),
    ("Pop", "Unidentified Pop Track", "Unknown Pop Artist"),
    ("Jazz", "Unidentified Jazz Track", "Unknown Jazz Artist"),
    ("Classical", "Unidentified Classical Piece", "Unknown Composer"),
)


def placeholder_track() -> NormalizedTrack:
    """The fixed demo result returned when no provider is configured."""
    return NormalizedTrack(
        title=PLACEHOLDER_TITLE,
        artist=PLACEHOLDER_ARTIST,
        score=PLACEHOLDER_SCORE,
        provider=PLACEHOLDER_PROVIDER,
        synthetic=True,
    )


def byte_statistics(audio: bytes) -> tuple[int, float]:
    """Return (size, mean byte value) of a buffer."""
    if not audio:
        return 0, 0.0
    return len(audio), float(np.frombuffer(audio, dtype=np.uint8).mean())


def heuristic_track(audio: bytes) -> NormalizedTrack:
    """Pick a genre placeholder from the buffer's hash and byte statistics.

    Deterministic for a given buffer. The score grows with clip size (more
    audio, slightly more "confident") but never exceeds HEURISTIC_MAX_SCORE.
    """
    size, mean = byte_statistics(audio)
    digest = compute_hash(audio)
    index = (int(digest[:8], 16) + int(mean)) % len(GENRE_GUESSES)
    genre, title, artist = GENRE_GUESSES[index]

    size_bonus = min(size / (1024 * 1024), 1.0) * (HEURISTIC_MAX_SCORE - HEURISTIC_MIN_SCORE)
    return NormalizedTrack(
        title=title,
        artist=artist,
        genre=genre,
        score=round(HEURISTIC_MIN_SCORE + size_bonus, 1),
        provider=HEURISTIC_PROVIDER,
        synthetic=True,
    )
