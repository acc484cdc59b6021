"""Endpoint tests through Litestar's TestClient."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from conftest import FakeProvider, make_track
from litestar.datastructures import UploadFile
from litestar.testing import TestClient

from songid.api.app import create_app
from songid.api.identify_routes import open_upload
from songid.config import Config, DemoMode
from songid.db.models import IdentificationResult
from songid.db.store import MemoryStore
from songid.errors import ValidationError
from songid.recognition.fallbacks import PLACEHOLDER_TITLE
from songid.recognition.identifier import Identifier
from songid.recognition.models import Matched, NoMatch, TransportError

WAV = b"RIFF" + bytes(2044)  # 2 KB


def client_for(
    config: Config, store: MemoryStore, *providers: FakeProvider, demo_mode: DemoMode | None = None
) -> TestClient:
    identifier = Identifier(list(providers), demo_mode or config.demo_mode)
    return TestClient(app=create_app(config, store=store, identifier=identifier))


def upload(
    client: TestClient, content: bytes = WAV, content_type: str = "audio/wav", name: str = "clip.wav"
):
    return client.post("/api/identify", files={"audio": (name, content, content_type)})


def assert_no_temp_files(upload_dir: Path) -> None:
    assert list(upload_dir.iterdir()) == []


def test_identify_with_provider_match(
    config: Config, memory_store: MemoryStore, upload_dir: Path
) -> None:
    provider = FakeProvider("audd", Matched(make_track("audd")))

    with client_for(config, memory_store, provider) as client:
        response = upload(client, name="midnight.wav")

    assert response.status_code == 200
    body = response.json()
    assert body["filename"] == "midnight.wav"
    assert body["confidence"] == 97.0
    assert body["provider"] == "audd"
    assert body["synthetic"] is False
    assert body["songId"] == body["song"]["id"]
    assert body["createdAt"]
    song = body["song"]
    assert song["title"] == "Midnight City"
    assert song["artist"] == "M83"
    assert song["year"] == 2011
    assert song["spotifyUrl"] == "https://open.spotify.com/track/1eyzqe2QqGZUmfcPZtrIyt"
    assert song["youtubeUrl"] is None
    assert song["genre"] is None
    assert song["duration"] is None
    assert provider.calls == [WAV]
    assert asyncio.run(memory_store.count()) == (1, 1)
    assert_no_temp_files(upload_dir)


def test_identify_placeholder_when_no_provider_configured(
    config: Config, memory_store: MemoryStore, upload_dir: Path
) -> None:
    unconfigured = FakeProvider("audd", Matched(make_track("audd")), configured=False)

    with client_for(config, memory_store, unconfigured) as client:
        response = upload(client)

    assert response.status_code == 200
    body = response.json()
    assert body["song"]["title"] == PLACEHOLDER_TITLE
    assert body["song"]["albumArt"] is None
    assert body["synthetic"] is True
    assert 0 <= body["confidence"] <= 100
    assert unconfigured.calls == []
    assert_no_temp_files(upload_dir)


def test_identify_without_file(config: Config, memory_store: MemoryStore) -> None:
    provider = FakeProvider("audd", Matched(make_track("audd")))

    with client_for(config, memory_store, provider) as client:
        response = client.post(
            "/api/identify", files={"other": ("notes.txt", b"hello", "text/plain")}
        )

    assert response.status_code == 400
    assert response.json()["message"] == "No audio file provided"
    assert provider.calls == []


def test_non_audio_upload_rejected_without_side_effects(
    config: Config, memory_store: MemoryStore, upload_dir: Path
) -> None:
    provider = FakeProvider("audd", Matched(make_track("audd")))
    before = asyncio.run(memory_store.count())

    with client_for(config, memory_store, provider) as client:
        response = upload(client, content=bytes(2048), content_type="text/plain", name="x.txt")

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid audio upload"
    assert "audio" in body["error"]
    assert provider.calls == []
    assert asyncio.run(memory_store.count()) == before
    assert_no_temp_files(upload_dir)


def test_oversized_upload_rejected(upload_dir: Path, memory_store: MemoryStore) -> None:
    config = Config(upload_dir=str(upload_dir), max_upload_bytes=1024)
    provider = FakeProvider("audd", Matched(make_track("audd")))

    with client_for(config, memory_store, provider) as client:
        response = upload(client, content=bytes(4096))

    assert response.status_code == 400
    assert "too large" in response.json()["error"]
    assert provider.calls == []
    assert asyncio.run(memory_store.count()) == (0, 0)
    assert_no_temp_files(upload_dir)


def test_no_match_returns_404(
    config: Config, memory_store: MemoryStore, upload_dir: Path
) -> None:
    raw = {"status": "success", "result": None}
    provider = FakeProvider("audd", NoMatch("audd", raw=raw))

    with client_for(config, memory_store, provider) as client:
        response = upload(client)

    assert response.status_code == 404
    body = response.json()
    assert body["message"] == "Song not identified"
    assert body["error"]
    assert body["apiResponse"] == raw
    assert asyncio.run(memory_store.count()) == (0, 0)
    assert_no_temp_files(upload_dir)


def test_provider_unavailable_returns_500(
    config: Config, memory_store: MemoryStore, upload_dir: Path
) -> None:
    provider = FakeProvider("audd", TransportError("audd", "HTTP 503: maintenance"))

    with client_for(config, memory_store, provider) as client:
        response = upload(client)

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Music identification service unavailable"
    assert "HTTP 503" in body["error"]
    assert "Traceback" not in response.text
    assert_no_temp_files(upload_dir)


def test_unexpected_error_still_cleans_up(
    config: Config, memory_store: MemoryStore, upload_dir: Path
) -> None:
    provider = FakeProvider("audd", error=RuntimeError("boom"))

    with client_for(config, memory_store, provider) as client:
        response = upload(client)

    assert response.status_code == 500
    assert response.json() == {"message": "Identification failed", "error": "boom"}
    assert_no_temp_files(upload_dir)


def test_history_limit_newest_first(config: Config, memory_store: MemoryStore) -> None:
    provider = FakeProvider("audd", Matched(make_track("audd")))

    with client_for(config, memory_store, provider) as client:
        for name in ["one.wav", "two.wav", "three.wav"]:
            assert upload(client, name=name).status_code == 200

        response = client.get("/api/identifications", params={"limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert [item["filename"] for item in body] == ["three.wav", "two.wav"]
    assert all(item["song"]["title"] == "Midnight City" for item in body)


@pytest.mark.parametrize("limit", ["abc", "0", "-3"])
def test_history_invalid_limit_uses_default(
    config: Config, memory_store: MemoryStore, limit: str
) -> None:
    with client_for(config, memory_store) as client:
        for i in range(12):
            assert upload(client, name=f"{i}.wav").status_code == 200

        response = client.get("/api/identifications", params={"limit": limit})
        default_response = client.get("/api/identifications")

    assert len(response.json()) == 10
    assert len(default_response.json()) == 10


def test_history_limit_is_capped(upload_dir: Path, memory_store: MemoryStore) -> None:
    config = Config(upload_dir=str(upload_dir), history_max_limit=2)

    with client_for(config, memory_store) as client:
        for i in range(3):
            assert upload(client, name=f"{i}.wav").status_code == 200

        response = client.get("/api/identifications", params={"limit": 50})

    assert len(response.json()) == 2


def test_get_identification_by_id(config: Config, memory_store: MemoryStore) -> None:
    with client_for(config, memory_store) as client:
        created = upload(client).json()

        found = client.get(f"/api/identifications/{created['id']}")
        missing = client.get("/api/identifications/not-a-real-id")

    assert found.status_code == 200
    assert found.json() == created
    assert missing.status_code == 404
    assert missing.json()["message"] == "Identification not found"


def test_providers_endpoint(config: Config, memory_store: MemoryStore) -> None:
    providers = [
        FakeProvider("audd", NoMatch("audd"), configured=False),
        FakeProvider("acrcloud", NoMatch("acrcloud")),
    ]

    with client_for(config, memory_store, *providers) as client:
        response = client.get("/api/providers")

    assert response.status_code == 200
    assert response.json() == {
        "demoMode": "placeholder",
        "providers": [
            {"name": "audd", "priority": 0, "configured": False},
            {"name": "acrcloud", "priority": 1, "configured": True},
        ],
    }


def test_upload_over_default_limit_returns_400(
    config: Config, memory_store: MemoryStore, upload_dir: Path
) -> None:
    provider = FakeProvider("audd", Matched(make_track("audd")))

    with client_for(config, memory_store, provider) as client:
        response = upload(client, content=bytes(11 * 1024 * 1024))

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid audio upload"
    assert "too large" in body["error"]
    assert provider.calls == []
    assert asyncio.run(memory_store.count()) == (0, 0)
    assert_no_temp_files(upload_dir)


def test_non_multipart_request_uses_error_shape(
    config: Config, memory_store: MemoryStore
) -> None:
    provider = FakeProvider("audd", Matched(make_track("audd")))

    with client_for(config, memory_store, provider) as client:
        response = client.post(
            "/api/identify", content=b"not a form", headers={"Content-Type": "text/plain"}
        )

    assert response.status_code == 400
    body = response.json()
    assert set(body) == {"message", "error"}
    assert provider.calls == []


class FailingStore(MemoryStore):
    async def get_recent_identifications(self, limit: int = 10) -> list[IdentificationResult]:
        raise RuntimeError("disk on fire")


def test_unexpected_history_error_is_500_without_traceback(config: Config) -> None:
    with client_for(config, FailingStore()) as client:
        response = client.get("/api/identifications")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error", "error": "disk on fire"}
    assert "Traceback" not in response.text


async def test_rejected_upload_is_closed() -> None:
    rejected = UploadFile(content_type="text/plain", filename="notes.txt", file_data=b"hello")

    with pytest.raises(ValidationError):
        async with open_upload(rejected):
            pass

    assert rejected.file.closed


async def test_accepted_upload_is_closed_after_use() -> None:
    accepted = UploadFile(content_type="audio/mpeg", filename="clip.mp3", file_data=WAV)

    async with open_upload(accepted) as upload:
        assert await upload.read() == WAV

    assert accepted.file.closed
