from pathlib import Path

import pytest

from delivery_hub.core.errors import BlobUploadError
from delivery_hub.services.blob_storage import PROOF_BUCKET, LocalBlobStorage


def test_upload_writes_file_and_returns_public_url(tmp_path: Path) -> None:
    storage = LocalBlobStorage(tmp_path, "http://cdn.test/media/")

    url = storage.upload_blob(PROOF_BUCKET, "12/photo.jpg", b"img")

    assert url == "http://cdn.test/media/delivery-proofs/12/photo.jpg"
    assert (tmp_path / "delivery-proofs" / "12" / "photo.jpg").read_bytes() == b"img"


@pytest.mark.parametrize("key", ["../escape.jpg", "12//photo.jpg", "12/ph oto.jpg", ""])
def test_unsafe_keys_are_rejected(tmp_path: Path, key: str) -> None:
    with pytest.raises(BlobUploadError):
        LocalBlobStorage(tmp_path, "http://cdn.test").upload_blob(PROOF_BUCKET, key, b"img")


def test_empty_blob_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(BlobUploadError):
        LocalBlobStorage(tmp_path, "http://cdn.test").upload_blob(PROOF_BUCKET, "1/a.jpg", b"")


def test_delete_removes_stored_blob(tmp_path: Path) -> None:
    storage = LocalBlobStorage(tmp_path, "http://cdn.test")
    storage.upload_blob(PROOF_BUCKET, "12/photo.jpg", b"img")

    storage.delete_blob(PROOF_BUCKET, "12/photo.jpg")
    storage.delete_blob(PROOF_BUCKET, "12/photo.jpg")

    assert not (tmp_path / "delivery-proofs" / "12" / "photo.jpg").exists()
