"""AudD (audd.io) recognition provider."""

from __future__ import annotations

from typing import Any

import httpx

from ...config import AudDConfig
from ...errors import ProviderError
from ..models import Matched, NoMatch, NormalizedTrack, RecognitionOutcome
from .base import DEFAULT_TIMEOUT_SECONDS, HTTPRecognitionProvider

# AudD omits the score for most matches
DEFAULT_SCORE = 0.9


def normalize_audd_score(score: Any) -> float:
    """AudD reports 0-1 (sometimes a percentage); return 0-100."""
    if score is None or score == "":
        return DEFAULT_SCORE * 100
    value = float(score)
    return value * 100 if value <= 1 else value


def parse_audd_result(result: dict[str, Any]) -> NormalizedTrack:
    """Map an AudD `result` object onto a NormalizedTrack."""
    spotify = result.get("spotify") or {}
    images = (spotify.get("album") or {}).get("images") or []
    return NormalizedTrack(
        title=result.get("title"),
        artist=result.get("artist"),
        album=result.get("album"),
        release_date=result.get("release_date"),
        score=normalize_audd_score(result.get("score")),
        spotify_track_id=spotify.get("id"),
        spotify_url=(spotify.get("external_urls") or {}).get("spotify"),
        album_art=images[0].get("url") if images else None,
        provider=AudDProvider.name,
    )


class AudDProvider(HTTPRecognitionProvider):
    """Submit the buffer to api.audd.io as a multipart upload."""

    name = "audd"

    def __init__(
        self,
        config: AudDConfig,
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
            self.config.url,
            data={"api_token": self.config.api_token or "", "return": "spotify"},
            files={"file": ("audio.wav", sample, "audio/wav")},
        )
        body = self._json(response)
        if not isinstance(body, dict):
            raise ProviderError(self.name, f"unexpected response shape: {type(body).__name__}")

        if body.get("status") == "error":
            error = body.get("error") or {}
            raise ProviderError(
                self.name,
                f"error {error.get('error_code')}: {error.get('error_message', 'unknown error')}",
            )

        result = body.get("result")
        if body.get("status") != "success" or not result:
            return NoMatch(self.name, raw=body)
        if not isinstance(result, dict):
            raise ProviderError(self.name, f"unexpected result shape: {type(result).__name__}")

        return Matched(parse_audd_result(result), raw=body)
