"""Base classes and protocol for recognition providers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Protocol, runtime_checkable

import httpx

from ...errors import ProviderError
from ...utils import sample_window
from ..models import RecognitionOutcome, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0

# Raised while parsing a response whose shape is not what the provider documents
PARSE_ERRORS = (ValueError, TypeError, KeyError, AttributeError, IndexError)


@runtime_checkable
class RecognitionProvider(Protocol):
    """Protocol for anything the identifier can ask to recognise audio."""

    @property
    def name(self) -> str:
        """Provider identifier used in logs and stored identifications."""
        ...

    @property
    def is_configured(self) -> bool:
        """Whether the credentials needed to call this provider are present."""
        ...

    async def recognize(self, audio: bytes) -> RecognitionOutcome:
        """Recognise a buffer. Never raises for provider-side failures."""
        ...


class BaseRecognitionProvider(ABC):
    """Sampling and failure handling shared by every provider.

    Subclasses implement `_submit`. Network failures, provider-reported
    errors and malformed responses raised from it all become a
    TransportError outcome, so the identifier can move on to the next
    provider.
    """

    name: ClassVar[str]

    def __init__(
        self,
        max_sample_bytes: int | None = None,
        sample_offset: float = 0.0,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.max_sample_bytes = max_sample_bytes
        self.sample_offset = sample_offset
        self.timeout = timeout

    @property
    @abstractmethod
    def is_configured(self) -> bool: ...

    @abstractmethod
    async def _submit(self, sample: bytes) -> RecognitionOutcome:
        """Send the sample to the provider and parse its answer."""
        ...

    def prepare_sample(self, audio: bytes) -> bytes:
        """Cut the audio down to this provider's payload budget."""
        return sample_window(audio, self.max_sample_bytes, self.sample_offset)

    async def recognize(self, audio: bytes) -> RecognitionOutcome:
        sample = self.prepare_sample(audio)
        logger.info(f"Calling {self.name} with {len(sample)} of {len(audio)} bytes")

        try:
            return await self._submit(sample)
        except httpx.TimeoutException:
            return TransportError(self.name, f"timed out after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            return TransportError(
                self.name, f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            )
        except httpx.HTTPError as e:
            return TransportError(self.name, f"{type(e).__name__}: {e}")
        except ProviderError as e:
            return TransportError(self.name, e.detail)
        except OSError as e:
            return TransportError(self.name, f"{type(e).__name__}: {e}")
        except PARSE_ERRORS as e:
            logger.warning(f"{self.name} returned a malformed response: {type(e).__name__}: {e}")
            return TransportError(self.name, f"malformed response: {type(e).__name__}: {e}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(configured={self.is_configured})"


class HTTPRecognitionProvider(BaseRecognitionProvider):
    """Provider reached directly over HTTP with a timeout-bounded httpx client."""

    def __init__(
        self,
        max_sample_bytes: int | None = None,
        sample_offset: float = 0.0,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(max_sample_bytes, sample_offset, timeout)
        self.transport = transport

    @abstractmethod
    async def _recognize(self, client: httpx.AsyncClient, sample: bytes) -> RecognitionOutcome:
        """Submit the sample and parse the provider's response."""
        ...

    async def _submit(self, sample: bytes) -> RecognitionOutcome:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await self._recognize(client, sample)

    def _json(self, response: httpx.Response) -> Any:
        """Raise for non-2xx responses and decode the JSON body."""
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON response: {response.text[:200]}") from e
