"""ACRCloud identify provider, through the ACRCloud Python SDK."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

from acrcloud.recognizer import ACRCloudRecognizer

from ...config import ACRCloudConfig
from ...errors import ProviderError
from ..models import Matched, NoMatch, NormalizedTrack, RecognitionOutcome
from .base import DEFAULT_TIMEOUT_SECONDS, BaseRecognitionProvider

STATUS_SUCCESS = 0
STATUS_NO_RESULT = 1001

type RecognizerFactory = Callable[[dict[str, Any]], Any]


def parse_acrcloud_music(music: dict[str, Any]) -> NormalizedTrack:
    """Map one entry of `metadata.music` onto a NormalizedTrack."""
    artists = music.get("artists") or []
    spotify = (music.get("external_metadata") or {}).get("spotify") or {}
    return NormalizedTrack(
        title=music.get("title"),
        artist=", ".join(a["name"] for a in artists if a.get("name")) or None,
        album=(music.get("album") or {}).get("name"),
        release_date=music.get("release_date"),
        score=music.get("score", 100),
        spotify_track_id=(spotify.get("track") or {}).get("id"),
        provider=ACRCloudProvider.name,
    )


class ACRCloudProvider(BaseRecognitionProvider):
    """Fingerprint the sample with the SDK and query the configured identify host.

    The SDK is blocking, so each call runs in a worker thread. The SDK's own
    `timeout` option bounds the network request.
    """

    name = "acrcloud"

    def __init__(
        self,
        config: ACRCloudConfig,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        recognizer_factory: RecognizerFactory = ACRCloudRecognizer,
    ) -> None:
        super().__init__(config.max_sample_bytes, config.sample_offset, timeout)
        self.config = config
        self.recognizer_factory = recognizer_factory

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def sdk_config(self) -> dict[str, Any]:
        return {
            "host": self.config.host,
            "access_key": self.config.access_key,
            "access_secret": self.config.access_secret,
            "timeout": self.timeout,
        }

    def _identify(self, sample: bytes) -> str:
        recognizer = self.recognizer_factory(self.sdk_config())
        return recognizer.recognize_by_filebuffer(sample, 0, self.config.rec_length_seconds)

    async def _submit(self, sample: bytes) -> RecognitionOutcome:
        body = json.loads(await asyncio.to_thread(self._identify, sample))
        if not isinstance(body, dict):
            raise ProviderError(self.name, f"unexpected response shape: {type(body).__name__}")

        status = body.get("status") or {}
        code = status.get("code")
        if code == STATUS_NO_RESULT:
            return NoMatch(self.name, raw=body)
        if code != STATUS_SUCCESS:
            raise ProviderError(self.name, f"status {code}: {status.get('msg', 'unknown error')}")

        music = (body.get("metadata") or {}).get("music") or []
        if not music:
            return NoMatch(self.name, raw=body)

        best = max(music, key=lambda m: m.get("score", 0))
        return Matched(parse_acrcloud_music(best), raw=body)
