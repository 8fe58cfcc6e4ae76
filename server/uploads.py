# =============================================================================
# Plant Disease Gateway - Upload Staging
# =============================================================================
# Materializes a multipart upload as a uniquely named temporary file for the
# lifetime of a request and guarantees its removal on every exit path
# (success, exception, timeout, cancellation).
# =============================================================================

import logging
import os
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import aiofiles
import aiofiles.os
from fastapi import UploadFile

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class UploadArtifact:
    """
    A staged upload on disk.

    Attributes:
        path:      Absolute path of the temporary file.
        filename:  Original filename supplied by the client.
        mime_type: Declared media type of the upload.
    """

    path: str
    filename: str
    mime_type: str

    async def read_bytes(self) -> bytes:
        async with aiofiles.open(self.path, "rb") as fh:
            return await fh.read()


def _unique_path(upload_dir: str, filename: str) -> str:
    suffix = os.path.splitext(filename or "")[1]
    return os.path.join(upload_dir, f"{uuid.uuid4().hex}{suffix}")


async def _remove(path: str) -> None:
    """Delete ``path`` once; failures are logged, never raised."""
    try:
        if await aiofiles.os.path.exists(path):
            await aiofiles.os.remove(path)
            logger.info("Uploaded file deleted: %s", path)
    except OSError as exc:
        logger.warning("Failed to delete uploaded file %s: %s", path, exc)


@asynccontextmanager
async def staged_upload(upload: UploadFile, upload_dir: str) -> AsyncIterator[UploadArtifact]:
    """
    Write ``upload`` to a fresh file under ``upload_dir`` and yield it.

    The file is removed when the block exits, whichever way it exits.

    Args:
        upload:     The multipart file received by the route.
        upload_dir: Directory for temporary uploads; created if missing.

    Yields:
        UploadArtifact describing the staged file.
    """
    await aiofiles.os.makedirs(upload_dir, exist_ok=True)
    artifact = UploadArtifact(
        path=_unique_path(upload_dir, upload.filename),
        filename=upload.filename or "",
        mime_type=upload.content_type or DEFAULT_MIME_TYPE,
    )
    try:
        async with aiofiles.open(artifact.path, "wb") as fh:
            while True:
                chunk = await upload.read(_CHUNK_SIZE)
                if not chunk:
                    break
                await fh.write(chunk)
        yield artifact
    finally:
        await _remove(artifact.path)
