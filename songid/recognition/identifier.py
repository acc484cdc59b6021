"""Identification orchestrator: ordered provider fallback.

Workflow:
1. Reject empty buffers
2. Try each configured provider in priority order, one at a time
3. Return the first match; log and continue on no-match or transport errors
4. When the chain is exhausted, apply the configured demo mode
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..config import DemoMode
from ..errors import NoMatchError, ServiceUnavailableError, ValidationError
from .fallbacks import heuristic_track, placeholder_track
from .models import Matched, NoMatch, NormalizedTrack, TransportError
from .providers import RecognitionProvider

logger = logging.getLogger(__name__)


class Identifier:
    """Sequential, first-match-wins identification over a list of providers."""

    def __init__(
        self,
        providers: Sequence[RecognitionProvider],
        demo_mode: DemoMode = DemoMode.PLACEHOLDER,
    ) -> None:
        self.providers = list(providers)
        self.demo_mode = demo_mode

    @property
    def configured_providers(self) -> list[RecognitionProvider]:
        return [p for p in self.providers if p.is_configured]

    async def identify(self, audio: bytes) -> NormalizedTrack:
        """Identify an audio buffer.

        Args:
            audio: Raw bytes of the uploaded clip

        Returns:
            The first provider match, or a synthetic track per demo mode

        Raises:
            ValidationError: If the buffer is empty
            NoMatchError: If providers answered but none recognised the audio
            ServiceUnavailableError: If no provider could be reached (or none
                is configured and demo mode is off)
        """
        if not audio:
            raise ValidationError("Uploaded audio is empty")

        configured = self.configured_providers
        for provider in self.providers:
            if provider not in configured:
                logger.debug(f"Skipping {provider.name}: credentials not configured")

        if not configured:
            if self.demo_mode == DemoMode.PLACEHOLDER:
                logger.warning("No recognition provider configured, returning placeholder track")
                return placeholder_track()
            if self.demo_mode == DemoMode.HEURISTIC:
                logger.warning("No recognition provider configured, returning heuristic guess")
                return heuristic_track(audio)
            raise ServiceUnavailableError("No music identification provider is configured")

        no_matches: list[NoMatch] = []
        errors: list[TransportError] = []

        for provider in configured:
            outcome = await provider.recognize(audio)
            match outcome:
                case Matched(track=track):
                    logger.info(
                        f"Identified by {provider.name}: {track.artist} - {track.title} "
                        + f"(score {track.score:.0f})"
                    )
                    return track
                case NoMatch():
                    logger.info(f"{provider.name} found no match, trying next provider")
                    no_matches.append(outcome)
                case TransportError():
                    logger.warning(f"{provider.name} failed: {outcome.error}")
                    errors.append(outcome)

        if self.demo_mode == DemoMode.HEURISTIC:
            logger.warning("All providers exhausted, returning heuristic guess")
            return heuristic_track(audio)

        if no_matches:
            raise NoMatchError(api_response=no_matches[-1].raw)

        raise ServiceUnavailableError(
            "; ".join(f"{e.provider}: {e.error}" for e in errors)
        )
