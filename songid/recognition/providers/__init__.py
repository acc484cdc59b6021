"""SongID recognition providers package."""

from __future__ import annotations

import httpx

from ...config import Config
from .acrcloud import ACRCloudProvider
from .audd import AudDProvider
from .audiotag import AudioTagProvider
from .base import BaseRecognitionProvider, HTTPRecognitionProvider, RecognitionProvider
from .shazam import ShazamProvider

# Fixed priority order; the identifier tries providers front to back
PROVIDER_PRIORITY: tuple[str, ...] = (
    AudDProvider.name,
    ACRCloudProvider.name,
    ShazamProvider.name,
    AudioTagProvider.name,
)


def build_providers(
    config: Config, transport: httpx.AsyncBaseTransport | None = None
) -> list[BaseRecognitionProvider]:
    """Instantiate every provider, configured or not, in priority order.

    `transport` is used by the providers that call their API through httpx.
    """
    timeout = config.provider_timeout_seconds
    providers = config.providers
    return [
        AudDProvider(providers.audd, timeout, transport),
        ACRCloudProvider(providers.acrcloud, timeout),
        ShazamProvider(providers.shazam, timeout, transport),
        AudioTagProvider(providers.audiotag, timeout, transport),
    ]


__all__ = [
    "PROVIDER_PRIORITY",
    "ACRCloudProvider",
    "AudDProvider",
    "AudioTagProvider",
    "BaseRecognitionProvider",
    "HTTPRecognitionProvider",
    "RecognitionProvider",
    "ShazamProvider",
    "build_providers",
]
