"""Identification history and provider status endpoints."""

from __future__ import annotations

from litestar import get

from ..db.store import DEFAULT_RECENT_LIMIT
from ..errors import NotFoundError, StorageError
from .models import IdentificationResponse, ProvidersResponse, ProviderStatus
from .state import AppState


def parse_limit(raw: str | None, maximum: int) -> int:
    """Parse the `limit` query parameter.

    Absent, unparseable and non-positive values fall back to the default.
    """
    try:
        limit = int(raw) if raw is not None else DEFAULT_RECENT_LIMIT
    except ValueError:
        limit = DEFAULT_RECENT_LIMIT
    if limit <= 0:
        limit = DEFAULT_RECENT_LIMIT
    return min(limit, maximum)


@get("/api/identifications")
async def get_identifications(
    state: AppState, limit: str | None = None
) -> list[IdentificationResponse]:
    """Get the most recent identifications, newest first."""
    try:
        results = await state.store.get_recent_identifications(
            parse_limit(limit, state.config.history_max_limit)
        )
    except StorageError as e:
        raise StorageError(e.detail, message="Failed to retrieve identifications") from e

    return [IdentificationResponse.from_result(r) for r in results]


@get("/api/identifications/{identification_id:str}")
async def get_identification(identification_id: str, state: AppState) -> IdentificationResponse:
    """Get a single identification with its song."""
    result = await state.store.get_identification_with_song(identification_id)
    if result is None:
        raise NotFoundError(
            f"Identification {identification_id} not found",
            message="Identification not found",
        )
    return IdentificationResponse.from_result(result)


@get("/api/providers")
async def get_providers(state: AppState) -> ProvidersResponse:
    """List recognition providers in the order they are tried."""
    identifier = state.identifier
    return ProvidersResponse(
        demoMode=identifier.demo_mode.value,
        providers=[
            ProviderStatus(
                name=provider.name,
                priority=i,
                configured=provider.is_configured,
            )
            for i, provider in enumerate(identifier.providers)
        ],
    )
