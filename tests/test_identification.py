"""Tests for identify-and-store and the track to song mapping."""

from __future__ import annotations

import pytest
from conftest import FakeProvider, make_track

from songid.db.store import MemoryStore
from songid.errors import NoMatchError
from songid.identification import identify_and_store, song_from_track
from songid.recognition.fallbacks import PLACEHOLDER_TITLE
from songid.recognition.identifier import Identifier
from songid.recognition.models import Matched, NoMatch, NormalizedTrack

AUDIO = b"ID3" + bytes(1024)


def test_song_from_track_fills_defaults() -> None:
    song = song_from_track(NormalizedTrack(score=40, provider="audiotag"))

    assert song.title == "Unknown Title"
    assert song.artist == "Unknown Artist"
    assert song.album is None
    assert song.year is None
    assert song.spotify_url is None
    assert song.youtube_url is None
    assert song.duration is None


def test_song_from_track_maps_fields() -> None:
    song = song_from_track(make_track("audd", album_art="https://img/cover.jpg", genre="Synthpop"))

    assert song.title == "Midnight City"
    assert song.year == 2011
    assert song.spotify_url == "https://open.spotify.com/track/1eyzqe2QqGZUmfcPZtrIyt"
    assert song.album_art == "https://img/cover.jpg"
    assert song.genre == "Synthpop"


def test_explicit_spotify_url_preferred() -> None:
    track = make_track("shazam", spotify_url="https://open.spotify.com/track/explicit")

    assert song_from_track(track).spotify_url == "https://open.spotify.com/track/explicit"


async def test_identify_and_store_persists_song_then_identification(
    memory_store: MemoryStore,
) -> None:
    identifier = Identifier([FakeProvider("acrcloud", Matched(make_track("acrcloud")))])

    result = await identify_and_store(memory_store, identifier, AUDIO, "clip.mp3")

    assert result.identification.song_id == result.song.id
    assert result.identification.filename == "clip.mp3"
    assert result.identification.confidence == 97.0
    assert result.identification.provider == "acrcloud"
    assert not result.identification.synthetic
    assert await memory_store.get_song(result.song.id) == result.song
    assert await memory_store.count() == (1, 1)


async def test_identify_and_store_marks_placeholder_synthetic(
    memory_store: MemoryStore,
) -> None:
    result = await identify_and_store(memory_store, Identifier([]), AUDIO, "clip.mp3")

    assert result.song.title == PLACEHOLDER_TITLE
    assert result.identification.synthetic
    assert result.identification.provider == "placeholder"


async def test_nothing_stored_when_not_identified(memory_store: MemoryStore) -> None:
    identifier = Identifier([FakeProvider("audd", NoMatch("audd"))])

    with pytest.raises(NoMatchError):
        _ = await identify_and_store(memory_store, identifier, AUDIO, "clip.mp3")

    assert await memory_store.count() == (0, 0)
