"""Pydantic models for API responses."""

from __future__ import annotations

from pydantic import BaseModel

from ..db.models import IdentificationResult, Song


class SongResponse(BaseModel):
    """Song as returned to the frontend."""

    id: str
    title: str
    artist: str
    album: str | None = None
    year: int | None = None
    genre: str | None = None
    duration: str | None = None
    spotifyUrl: str | None = None
    youtubeUrl: str | None = None
    albumArt: str | None = None
    createdAt: str

    @classmethod
    def from_song(cls, song: Song) -> SongResponse:
        return cls(
            id=song.id,
            title=song.title,
            artist=song.artist,
            album=song.album,
            year=song.year,
            genre=song.genre,
            duration=song.duration,
            spotifyUrl=song.spotify_url,
            youtubeUrl=song.youtube_url,
            albumArt=song.album_art,
            createdAt=song.created_at.isoformat(),
        )


class IdentificationResponse(BaseModel):
    """An identification joined with its song."""

    id: str
    songId: str | None
    filename: str
    confidence: float
    provider: str | None = None
    synthetic: bool = False
    createdAt: str
    song: SongResponse

    @classmethod
    def from_result(cls, result: IdentificationResult) -> IdentificationResponse:
        identification = result.identification
        return cls(
            id=identification.id,
            songId=identification.song_id,
            filename=identification.filename,
            confidence=identification.confidence,
            provider=identification.provider,
            synthetic=identification.synthetic,
            createdAt=identification.created_at.isoformat(),
            song=SongResponse.from_song(result.song),
        )


class ProviderStatus(BaseModel):
    """Configuration status of one recognition provider."""

    name: str
    priority: int
    configured: bool


class ProvidersResponse(BaseModel):
    """Recognition providers in the order they are tried."""

    demoMode: str
    providers: list[ProviderStatus]
