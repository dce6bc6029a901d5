import uuid
from unittest.mock import MagicMock, patch

import pytest
import requests

from byteinit.services.upload_service import (
    ImageUploadService,
    UploadError,
    UploadNotConfiguredError,
    build_image_path,
)


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setenv("IMAGEKIT_PRIVATE_KEY", "private_key")
    monkeypatch.setenv("IMAGEKIT_UPLOAD_URL", "https://upload.example.com/files")
    return ImageUploadService()


def _response(payload, status_error=None):
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.side_effect = status_error
    return resp


def test_build_image_path():
    user_id = uuid.uuid4()
    path = build_image_path(user_id, "my cat photo.png")
    assert path.startswith(f"blog/{user_id}/")
    assert path.endswith("-my-cat-photo.png")
    assert build_image_path(user_id, "../../etc/passwd").endswith("-passwd")


def test_upload_requires_configuration(monkeypatch):
    monkeypatch.setenv("IMAGEKIT_PRIVATE_KEY", "")
    with pytest.raises(UploadNotConfiguredError):
        ImageUploadService().upload_image(user_id=uuid.uuid4(), filename="a.png", content=b"x", content_type="image/png")


def test_upload_posts_to_imagekit(configured):
    user_id = uuid.uuid4()
    payload = {"url": "https://ik.imagekit.io/x/a.png", "fileId": "f1", "name": "a.png"}
    with patch("byteinit.services.upload_service.requests.post", return_value=_response(payload)) as post:
        result = configured.upload_image(user_id=user_id, filename="a.png", content=b"png", content_type="image/png")

    assert result == {"url": "https://ik.imagekit.io/x/a.png", "file_id": "f1", "name": "a.png"}
    args, kwargs = post.call_args
    assert args[0] == "https://upload.example.com/files"
    assert kwargs["auth"] == ("private_key", "")
    assert kwargs["data"]["folder"] == f"/blog/{user_id}"
    assert kwargs["data"]["useUniqueFileName"] == "false"
    assert kwargs["files"]["file"][1] == b"png"


def test_upload_http_error(configured):
    resp = _response({}, status_error=requests.HTTPError("401 Unauthorized"))
    with patch("byteinit.services.upload_service.requests.post", return_value=resp):
        with pytest.raises(UploadError):
            configured.upload_image(user_id=uuid.uuid4(), filename="a.png", content=b"x", content_type="image/png")


def test_upload_response_without_url(configured):
    with patch("byteinit.services.upload_service.requests.post", return_value=_response({"fileId": "f1"})):
        with pytest.raises(UploadError):
            configured.upload_image(user_id=uuid.uuid4(), filename="a.png", content=b"x", content_type="image/png")
