# pyright: reportExplicitAny=false
"""Database models for SongID using SQLModel."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar
from uuid import uuid4

import sqlalchemy as sa
from pydantic import BaseModel
from pydantic import Field as PydanticField
from sqlmodel import Column, Field, SQLModel


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a new opaque record id."""
    return str(uuid4())


class SongCreate(BaseModel):
    """Caller-supplied fields of a Song (id and created_at are server assigned)."""

    title: str = "Unknown Title"
    artist: str = "Unknown Artist"
    album: str | None = None
    year: int | None = None
    genre: str | None = None
    duration: str | None = None
    spotify_url: str | None = None
    youtube_url: str | None = None
    album_art: str | None = None


class IdentificationCreate(BaseModel):
    """Caller-supplied fields of an Identification."""

    song_id: str | None = None
    filename: str
    confidence: float = PydanticField(ge=0.0, le=100.0)
    provider: str | None = None
    synthetic: bool = False


class Song(SQLModel, table=True):
    """An identified song. Immutable once created."""

    __tablename__: ClassVar[Any] = "songs"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    title: str
    artist: str
    album: str | None = None
    year: int | None = None
    genre: str | None = None
    duration: str | None = None
    spotify_url: str | None = None
    youtube_url: str | None = None
    album_art: str | None = None
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(sa.DateTime(timezone=True), nullable=False)
    )


class Identification(SQLModel, table=True):
    """One upload request and the song it was matched to."""

    __tablename__: ClassVar[Any] = "identifications"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    song_id: str | None = Field(default=None, foreign_key="songs.id", index=True)
    filename: str
    confidence: float
    provider: str | None = None  # Provider name, or "placeholder" / "heuristic"
    synthetic: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(sa.DateTime(timezone=True), nullable=False, index=True),
    )


@dataclass(frozen=True)
class IdentificationResult:
    """An Identification joined with its Song, built on read."""

    identification: Identification
    song: Song
