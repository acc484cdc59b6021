"""Shared fixtures for SongID tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from songid.config import Config
from songid.db.store import MemoryStore
from songid.recognition.models import NormalizedTrack, RecognitionOutcome

PROVIDER_ENV_VARS = [
    "AUDD_API_KEY",
    "MUSIC_API_KEY",
    "ACRCLOUD_HOST",
    "ACRCLOUD_ACCESS_KEY",
    "ACRCLOUD_ACCESS_SECRET",
    "RAPIDAPI_KEY",
    "AUDIOTAG_API_KEY",
    "SONGID_CONFIG",
    "SONGID_DEMO_MODE",
    "DATABASE_URL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real credentials in the developer's environment out of tests."""
    for var in PROVIDER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class FakeProvider:
    """In-process provider returning canned outcomes and recording calls."""

    def __init__(
        self,
        name: str,
        outcome: RecognitionOutcome | None = None,
        configured: bool = True,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.outcome = outcome
        self.configured = configured
        self.error = error
        self.calls: list[bytes] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def recognize(self, audio: bytes) -> RecognitionOutcome:
        self.calls.append(audio)
        if self.error is not None:
            raise self.error
        assert self.outcome is not None
        return self.outcome


def make_track(provider: str = "fake", **overrides: object) -> NormalizedTrack:
    fields: dict[str, object] = {
        "title": "Midnight City",
        "artist": "M83",
        "album": "Hurry Up, We're Dreaming",
        "release_date": "2011-10-18",
        "score": 97.0,
        "spotify_track_id": "1eyzqe2QqGZUmfcPZtrIyt",
        "provider": provider,
    }
    fields.update(overrides)
    return NormalizedTrack(**fields)  # pyright: ignore[reportArgumentType]


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def config(upload_dir: Path) -> Config:
    return Config(upload_dir=str(upload_dir))
