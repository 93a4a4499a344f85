import pytest

from civicdesk.core.errors import ValidationFailed
from civicdesk.services.upload_service import LocalObjectStorage, ObjectStorage, UploadService


class RecordingStorage(ObjectStorage):
    def __init__(self):
        self.uploads = []

    def upload(self, name, data, content_type):
        self.uploads.append((name, data, content_type))
        return f"https://storage.example.com/{name}?sig=abc"


@pytest.fixture
def storage():
    return RecordingStorage()


def test_upload_names_file_after_user(storage):
    service = UploadService(storage, max_bytes=100)

    result = service.upload("u1", "photo.png", "image/png", b"data")

    assert result["filename"].startswith("u1_")
    assert result["filename"].endswith(".png")
    assert result["url"] == f"https://storage.example.com/{result['filename']}?sig=abc"
    assert storage.uploads == [(result["filename"], b"data", "image/png")]


def test_extension_defaults_to_jpg(storage):
    result = UploadService(storage).upload("u1", "camera-capture", "image/jpeg", b"data")

    assert result["filename"].endswith(".jpg")


def test_videos_are_allowed(storage):
    UploadService(storage).upload("u1", "clip.mp4", "video/mp4", b"data")

    assert storage.uploads[0][2] == "video/mp4"


@pytest.mark.parametrize("content_type,data", [
    ("image/png", b""),
    ("application/pdf", b"%PDF"),
    (None, b"data"),
    ("image/png", b"x" * 101),
])
def test_rejected_uploads(storage, content_type, data):
    with pytest.raises(ValidationFailed):
        UploadService(storage, max_bytes=100).upload("u1", "file.bin", content_type, data)

    assert storage.uploads == []


def test_local_storage_writes_file(tmp_path):
    url = LocalObjectStorage(str(tmp_path / "uploads")).upload("u1_1.png", b"png", "image/png")

    assert (tmp_path / "uploads" / "u1_1.png").read_bytes() == b"png"
    assert url.startswith("file://")
