"""Shazam recognition through RapidAPI."""

from __future__ import annotations

from typing import Any

import httpx

from ...config import ShazamConfig
from ...errors import ProviderError
from ..models import Matched, NoMatch, NormalizedTrack, RecognitionOutcome
from .base import DEFAULT_TIMEOUT_SECONDS, HTTPRecognitionProvider

# Shazam returns no confidence value for a match
SHAZAM_SCORE = 95.0


def _section_metadata(track: dict[str, Any], key: str) -> str | None:
    for section in track.get("sections") or []:
        for item in section.get("metadata") or []:
            if item.get("title") == key:
                return item.get("text")
    return None


def _spotify_track_id(track: dict[str, Any]) -> str | None:
    for provider in (track.get("hub") or {}).get("providers") or []:
        if provider.get("type") != "SPOTIFY":
            continue
        for action in provider.get("actions") or []:
            uri = action.get("uri") or ""
            if uri.startswith("spotify:track:"):
                return uri.removeprefix("spotify:track:")
    return None


def parse_shazam_track(track: dict[str, Any]) -> NormalizedTrack:
    """Map a Shazam `track` object onto a NormalizedTrack."""
    return NormalizedTrack(
        title=track.get("title"),
        artist=track.get("subtitle"),
        album=_section_metadata(track, "Album"),
        release_date=_section_metadata(track, "Released"),
        score=SHAZAM_SCORE,
        spotify_track_id=_spotify_track_id(track),
        album_art=(track.get("images") or {}).get("coverart"),
        genre=(track.get("genres") or {}).get("primary"),
        provider=ShazamProvider.name,
    )


class ShazamProvider(HTTPRecognitionProvider):
    """Multipart upload to a RapidAPI-hosted Shazam endpoint."""

    name = "shazam"

    def __init__(
        self,
        config: ShazamConfig,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config.max_sample_bytes, config.sample_offset, timeout, transport)
        self.config = config

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    async def _recognize(self, client: httpx.AsyncClient, sample: bytes) -> RecognitionOutcome:
        response = await client.post(
            f"https://{self.config.rapidapi_host}{self.config.path}",
            headers={
                "X-RapidAPI-Key": self.config.rapidapi_key or "",
                "X-RapidAPI-Host": self.config.rapidapi_host,
            },
            files={"file": ("audio.wav", sample, "audio/wav")},
        )
        body = self._json(response)
        if not isinstance(body, dict):
            raise ProviderError(self.name, f"unexpected response shape: {type(body).__name__}")

        track = body.get("track")
        if not track:
            return NoMatch(self.name, raw=body)

        return Matched(parse_shazam_track(track), raw=body)
