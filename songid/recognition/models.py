"""Data models for recognition providers and the identifier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, field_validator


class NormalizedTrack(BaseModel):
    """Provider-agnostic description of a recognised track."""

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    release_date: str | None = None  # As reported, e.g. "2019-05-31" or "2019"
    score: float = Field(ge=0.0, le=100.0)
    spotify_track_id: str | None = None
    spotify_url: str | None = None
    album_art: str | None = None
    genre: str | None = None
    provider: str
    synthetic: bool = False  # True for placeholder / heuristic results

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> float:
        """Clamp provider scores into the 0-100 range."""
        return min(100.0, max(0.0, float(v)))


@dataclass(frozen=True)
class Matched:
    """The provider recognised the audio."""

    track: NormalizedTrack
    raw: Any = None


@dataclass(frozen=True)
class NoMatch:
    """The provider answered but did not recognise the audio."""

    provider: str
    raw: Any = None
    reason: str = "no match"


@dataclass(frozen=True)
class TransportError:
    """The provider could not be reached or returned an unusable response."""

    provider: str
    error: str


type RecognitionOutcome = Matched | NoMatch | TransportError
