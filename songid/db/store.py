"""Song store: persistence of songs and identification records.

Two interchangeable backends implement the same protocol:
- MemoryStore: insertion-ordered dicts, for development and tests
- SqlStore: SQLModel over an async SQLAlchemy engine, for production

Stores are created once per application and passed to request handlers
through application state.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..config import Config, StoreBackend
from ..errors import StorageError
from .config import create_engine, init_db
from .models import (
    Identification,
    IdentificationCreate,
    IdentificationResult,
    Song,
    SongCreate,
)

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 10


class SongStore(Protocol):
    """Protocol for song stores. No update or delete operations exist."""

    async def startup(self) -> None:
        """Prepare the backend (create tables, open pools)."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...

    async def create_song(self, data: SongCreate) -> Song:
        """Assign id and timestamp, store and return the song."""
        ...

    async def get_song(self, song_id: str) -> Song | None:
        """Look up a song by id."""
        ...

    async def create_identification(self, data: IdentificationCreate) -> Identification:
        """Assign id and timestamp, store and return the identification."""
        ...

    async def get_identification_with_song(
        self, identification_id: str
    ) -> IdentificationResult | None:
        """Return the identification joined with its song, or None."""
        ...

    async def get_recent_identifications(
        self, limit: int = DEFAULT_RECENT_LIMIT
    ) -> list[IdentificationResult]:
        """Return up to `limit` resolvable identifications, newest first."""
        ...

    async def count(self) -> tuple[int, int]:
        """Return (number of songs, number of identifications)."""
        ...


class MemoryStore:
    """In-memory store backed by insertion-ordered dicts keyed by id."""

    def __init__(self) -> None:
        self._songs: dict[str, Song] = {}
        self._identifications: dict[str, Identification] = {}

    async def startup(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def create_song(self, data: SongCreate) -> Song:
        song = Song(**data.model_dump())
        self._songs[song.id] = song
        return song

    async def get_song(self, song_id: str) -> Song | None:
        return self._songs.get(song_id)

    async def create_identification(self, data: IdentificationCreate) -> Identification:
        identification = Identification(**data.model_dump())
        self._identifications[identification.id] = identification
        return identification

    async def get_identification_with_song(
        self, identification_id: str
    ) -> IdentificationResult | None:
        identification = self._identifications.get(identification_id)
        if identification is None or identification.song_id is None:
            return None

        song = self._songs.get(identification.song_id)
        if song is None:
            return None

        return IdentificationResult(identification=identification, song=song)

    async def get_recent_identifications(
        self, limit: int = DEFAULT_RECENT_LIMIT
    ) -> list[IdentificationResult]:
        # Reversed first so equal timestamps come out newest-inserted first
        ordered = sorted(
            reversed(list(self._identifications.values())),
            key=lambda i: i.created_at,
            reverse=True,
        )

        results: list[IdentificationResult] = []
        for identification in ordered:
            if len(results) >= limit:
                break
            if identification.song_id is None:
                continue
            song = self._songs.get(identification.song_id)
            if song is not None:
                results.append(IdentificationResult(identification=identification, song=song))
        return results

    async def count(self) -> tuple[int, int]:
        return len(self._songs), len(self._identifications)


class SqlStore:
    """Relational store using SQLModel sessions on an async engine."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def startup(self) -> None:
        try:
            await init_db(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not initialize database: {e}") from e
        logger.info("Database tables ready")

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")

    async def create_song(self, data: SongCreate) -> Song:
        song = Song(**data.model_dump())
        try:
            async with AsyncSession(self.engine, expire_on_commit=False) as session:
                session.add(song)
                await session.commit()
                await session.refresh(song)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not create song: {e}") from e
        return song

    async def get_song(self, song_id: str) -> Song | None:
        try:
            async with AsyncSession(self.engine, expire_on_commit=False) as session:
                result = await session.exec(select(Song).where(Song.id == song_id))
                return result.first()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not load song {song_id}: {e}") from e

    async def create_identification(self, data: IdentificationCreate) -> Identification:
        identification = Identification(**data.model_dump())
        try:
            async with AsyncSession(self.engine, expire_on_commit=False) as session:
                session.add(identification)
                await session.commit()
                await session.refresh(identification)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not create identification: {e}") from e
        return identification

    async def get_identification_with_song(
        self, identification_id: str
    ) -> IdentificationResult | None:
        stmt = (
            select(Identification, Song)
            .join(Song, Identification.song_id == Song.id)  # pyright: ignore[reportArgumentType]
            .where(Identification.id == identification_id)
        )
        try:
            async with AsyncSession(self.engine, expire_on_commit=False) as session:
                result = await session.exec(stmt)
                row = result.first()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not load identification {identification_id}: {e}") from e

        if row is None:
            return None
        identification, song = row
        return IdentificationResult(identification=identification, song=song)

    async def get_recent_identifications(
        self, limit: int = DEFAULT_RECENT_LIMIT
    ) -> list[IdentificationResult]:
        # Inner join: identifications without a resolvable song never appear
        stmt = (
            select(Identification, Song)
            .join(Song, Identification.song_id == Song.id)  # pyright: ignore[reportArgumentType]
            # Equal timestamps fall back to id so the order is always deterministic
            .order_by(
                Identification.created_at.desc(),  # pyright: ignore[reportAttributeAccessIssue]
                Identification.id.desc(),  # pyright: ignore[reportAttributeAccessIssue]
            )
            .limit(limit)
        )
        try:
            async with AsyncSession(self.engine, expire_on_commit=False) as session:
                result = await session.exec(stmt)
                rows = result.all()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not load recent identifications: {e}") from e

        return [
            IdentificationResult(identification=identification, song=song)
            for identification, song in rows
        ]

    async def count(self) -> tuple[int, int]:
        try:
            async with AsyncSession(self.engine) as session:
                songs = (await session.exec(select(func.count()).select_from(Song))).one()
                identifications = (
                    await session.exec(select(func.count()).select_from(Identification))
                ).one()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not count records: {e}") from e
        return songs, identifications


def create_store(config: Config) -> SongStore:
    """Build the store backend selected in configuration."""
    if config.store == StoreBackend.SQL:
        logger.info("Using SQL song store")
        return SqlStore(create_engine(config.database_url))

    logger.info("Using in-memory song store")
    return MemoryStore()
