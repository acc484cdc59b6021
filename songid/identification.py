"""Identify an uploaded clip and persist the result."""

from __future__ import annotations

import logging

from .db.models import IdentificationCreate, IdentificationResult, SongCreate
from .db.store import SongStore
from .errors import NotFoundError
from .recognition.identifier import Identifier
from .recognition.models import NormalizedTrack
from .utils import parse_year, spotify_track_url

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_ARTIST = "Unknown Artist"


def song_from_track(track: NormalizedTrack) -> SongCreate:
    """Map a normalized track onto the fields of a new Song."""
    return SongCreate(
        title=track.title or UNKNOWN_TITLE,
        artist=track.artist or UNKNOWN_ARTIST,
        album=track.album or None,
        year=parse_year(track.release_date),
        genre=track.genre,
        duration=None,
        spotify_url=track.spotify_url or spotify_track_url(track.spotify_track_id),
        youtube_url=None,
        album_art=track.album_art,
    )


async def identify_and_store(
    store: SongStore,
    identifier: Identifier,
    audio: bytes,
    filename: str,
) -> IdentificationResult:
    """Run the identifier and record the song and identification.

    The Song is always created before the Identification that references it.

    Raises:
        ValidationError, NoMatchError, ServiceUnavailableError: from the identifier
        StorageError: If persisting fails
        NotFoundError: If the stored records cannot be read back
    """
    track = await identifier.identify(audio)

    song = await store.create_song(song_from_track(track))
    identification = await store.create_identification(
        IdentificationCreate(
            song_id=song.id,
            filename=filename,
            confidence=track.score,
            provider=track.provider,
            synthetic=track.synthetic,
        )
    )
    logger.info(
        f"Stored identification {identification.id} for '{filename}' "
        + f"({track.provider}, synthetic={track.synthetic})"
    )

    result = await store.get_identification_with_song(identification.id)
    if result is None:
        raise NotFoundError(f"Identification {identification.id} could not be read back")
    return result
