"""API endpoint for uploading and identifying an audio clip."""

from __future__ import annotations

import logging
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any

from litestar import post
from litestar.datastructures import UploadFile
from litestar.enums import RequestEncodingType
from litestar.params import Body
from litestar.status_codes import HTTP_200_OK

from ..errors import SongIDError, ValidationError
from ..identification import identify_and_store
from ..utils import safe_suffix
from .models import IdentificationResponse
from .state import AppState

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "audio"
CHUNK_SIZE = 64 * 1024


@asynccontextmanager
async def open_upload(upload: Any) -> AsyncIterator[UploadFile]:
    """Yield the upload once it is present and labelled as audio.

    The upload is closed on exit, including when validation rejects it.
    """
    if not isinstance(upload, UploadFile):
        raise ValidationError("No audio file provided", message="No audio file provided")

    try:
        content_type = (upload.content_type or "").lower()
        if not content_type.startswith("audio/"):
            raise ValidationError(
                f"Only audio files are allowed, got '{content_type or 'unknown'}'",
            )
        yield upload
    finally:
        await upload.close()


async def spool_upload(upload: UploadFile, destination: Path, max_bytes: int) -> int:
    """Copy the upload to disk in chunks, enforcing the size limit.

    Returns:
        Number of bytes written

    Raises:
        ValidationError: If the upload is empty or larger than max_bytes
    """
    size = 0
    with open(destination, "wb") as f:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > max_bytes:
                raise ValidationError(
                    f"File too large: more than {max_bytes / 1024 / 1024:.1f}MB. "
                    + f"Maximum: {max_bytes / 1024 / 1024:.1f}MB"
                )
            _ = f.write(chunk)

    if size == 0:
        raise ValidationError("Uploaded audio is empty")
    return size


@post("/api/identify", status_code=HTTP_200_OK)
async def identify_upload(
    data: Annotated[dict[str, Any], Body(media_type=RequestEncodingType.MULTI_PART)],
    state: AppState,
) -> IdentificationResponse:
    """Upload an audio clip, identify it, and record the result.

    Workflow:
    1. Validate the `audio` field (present, audio/* content type)
    2. Spool it to a temporary file, enforcing the size limit
    3. Run the identifier over the bytes
    4. Create Song, then Identification, and return them joined

    The temporary file is removed and the upload closed on every exit path.

    Raises:
        ValidationError: Missing, non-audio, empty or oversized upload (400)
        NoMatchError: No provider recognised the clip (404)
        ServiceUnavailableError: Providers unreachable (500)
        StorageError: Persisting failed (500)
    """
    config = state.config

    async with open_upload(data.get(UPLOAD_FIELD)) as upload:
        temp_file = tempfile.NamedTemporaryFile(
            delete=False, suffix=safe_suffix(upload.filename), dir=config.upload_dir
        )
        temp_path = Path(temp_file.name)
        temp_file.close()

        try:
            size = await spool_upload(upload, temp_path, config.max_upload_bytes)
            logger.info(f"Received '{upload.filename}' ({size} bytes, {upload.content_type})")

            audio = temp_path.read_bytes()
            result = await identify_and_store(
                state.store, state.identifier, audio, upload.filename or "upload"
            )
            return IdentificationResponse.from_result(result)

        except SongIDError:
            raise
        except Exception as e:
            logger.exception("Identification error")
            raise SongIDError(str(e)) from e
        finally:
            temp_path.unlink(missing_ok=True)
