"""AudioTag.info recognition provider.

AudioTag works in two steps: the upload returns a job token, and the result
is polled with `get_result` until it is no longer "wait". Polling is bounded
by `max_polls`, and every request by the provider timeout.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ...config import AudioTagConfig
from ...errors import ProviderError
from ..models import Matched, NoMatch, NormalizedTrack, RecognitionOutcome
from .base import DEFAULT_TIMEOUT_SECONDS, HTTPRecognitionProvider

logger = logging.getLogger(__name__)

# AudioTag returns no confidence value for a match
AUDIOTAG_SCORE = 85.0


def parse_audiotag_data(data: list[dict[str, Any]]) -> NormalizedTrack | None:
    """Map the first track of a "found" result onto a NormalizedTrack.

    Tracks are positional lists: [title, artist, album, year].
    """
    for entry in data:
        for track in entry.get("tracks") or []:
            if not track:
                continue
            fields = list(track) + [None] * (4 - len(track))
            title, artist, album, year = fields[:4]
            return NormalizedTrack(
                title=title or None,
                artist=artist or None,
                album=album or None,
                release_date=str(year) if year else None,
                score=AUDIOTAG_SCORE,
                provider=AudioTagProvider.name,
            )
    return None


class AudioTagProvider(HTTPRecognitionProvider):
    """Upload-then-poll client for audiotag.info."""

    name = "audiotag"

    def __init__(
        self,
        config: AudioTagConfig,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config.max_sample_bytes, config.sample_offset, timeout, transport)
        self.config = config

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def _check(self, body: Any) -> dict[str, Any]:
        if not isinstance(body, dict):
            raise ProviderError(self.name, f"unexpected response shape: {type(body).__name__}")
        if not body.get("success"):
            raise ProviderError(self.name, str(body.get("error") or "request rejected"))
        return body

    def _outcome(self, body: dict[str, Any]) -> RecognitionOutcome | None:
        """Return an outcome for a finished job, or None while it is pending."""
        status = body.get("result") or body.get("job_status")
        if status == "wait":
            return None
        if status == "found":
            track = parse_audiotag_data(body.get("data") or [])
            return Matched(track, raw=body) if track else NoMatch(self.name, raw=body)
        return NoMatch(self.name, raw=body)

    async def _recognize(self, client: httpx.AsyncClient, sample: bytes) -> RecognitionOutcome:
        api_key = self.config.api_key or ""
        response = await client.post(
            self.config.url,
            data={"apikey": api_key, "action": "identify"},
            files={"file": ("audio.wav", sample, "audio/wav")},
        )
        body = self._check(self._json(response))

        outcome = self._outcome(body)
        if outcome is not None:
            return outcome

        token = body.get("token")
        if not token:
            raise ProviderError(self.name, "pending job without token")

        for _ in range(self.config.max_polls):
            await asyncio.sleep(self.config.poll_interval_seconds)
            response = await client.post(
                self.config.url,
                data={"apikey": api_key, "action": "get_result", "token": token},
            )
            body = self._check(self._json(response))
            outcome = self._outcome(body)
            if outcome is not None:
                return outcome

        logger.warning(f"AudioTag job {token} still pending after {self.config.max_polls} polls")
        raise ProviderError(self.name, f"job still pending after {self.config.max_polls} polls")
