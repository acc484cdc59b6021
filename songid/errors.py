"""Error taxonomy shared by the store, the identifier and the API layer."""

from __future__ import annotations

from typing import Any


class SongIDError(Exception):
    """Base error carrying a stable message and a human-readable detail."""

    status_code: int = 500
    default_message: str = "Identification failed"

    def __init__(self, detail: str, message: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.message = message or self.default_message

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "error": self.detail}


class ValidationError(SongIDError):
    """Bad, missing or oversized upload."""

    status_code = 400
    default_message = "Invalid audio upload"


class NotFoundError(SongIDError):
    """A requested record does not exist."""

    status_code = 404
    default_message = "Not found"


class NoMatchError(NotFoundError):
    """No provider recognised the uploaded audio."""

    default_message = "Song not identified"

    def __init__(
        self,
        detail: str = "No match found in database. Try uploading a popular song with clear audio quality.",
        api_response: Any = None,
    ) -> None:
        super().__init__(detail)
        self.api_response = api_response

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "apiResponse": self.api_response}


class ProviderError(SongIDError):
    """Network, auth or response-shape failure from one recognition provider.

    Recovered by the identifier's fallback chain; never rendered directly.
    """

    default_message = "Recognition provider error"

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(f"{provider}: {detail}")
        self.provider = provider


class ServiceUnavailableError(SongIDError):
    """Every recognition path was exhausted without a usable answer."""

    default_message = "Music identification service unavailable"


class StorageError(SongIDError):
    """Persistence failure."""

    default_message = "Storage failure"
