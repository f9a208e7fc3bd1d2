"""Blob storage for delivery proof photos."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol

from delivery_hub.core.config import settings
from delivery_hub.core.errors import BlobUploadError

logger = logging.getLogger(__name__)

PROOF_BUCKET = "delivery-proofs"
_SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9._-]+$")


class BlobStorage(Protocol):
    def upload_blob(self, bucket: str, key: str, data: bytes) -> str: ...

    def delete_blob(self, bucket: str, key: str) -> None: ...


def _validate_key(bucket: str, key: str) -> list[str]:
    segments = key.split("/")
    for segment in [bucket, *segments]:
        if not segment or segment in {".", ".."} or not _SAFE_SEGMENT.match(segment):
            raise BlobUploadError(f"Invalid blob path: {bucket}/{key}")
    return segments


class LocalBlobStorage:
    """Store blobs on the local filesystem and serve them from ``base_url``."""

    def __init__(self, root: str | Path = settings.media_root, base_url: str = settings.media_base_url) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def upload_blob(self, bucket: str, key: str, data: bytes) -> str:
        segments = _validate_key(bucket, key)
        if not data:
            raise BlobUploadError("Refusing to store an empty blob")
        target = self.root.joinpath(bucket, *segments)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            logger.warning("[BLOB] upload failed bucket=%s key=%s: %s", bucket, key, exc)
            raise BlobUploadError("Photo upload failed") from exc
        logger.info("[BLOB] stored bucket=%s key=%s bytes=%s", bucket, key, len(data))
        return f"{self.base_url}/{bucket}/{key}"

    def delete_blob(self, bucket: str, key: str) -> None:
        """Remove a stored blob; a missing file is not an error."""
        target = self.root.joinpath(bucket, *_validate_key(bucket, key))
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("[BLOB] delete failed bucket=%s key=%s: %s", bucket, key, exc)
            raise BlobUploadError("Photo could not be removed") from exc
        logger.info("[BLOB] removed bucket=%s key=%s", bucket, key)
