"""
Image uploads to the ImageKit CDN.

Uses the ImageKit REST upload endpoint directly over ``requests`` with HTTP
basic auth (private key as username, empty password).
"""

import os
import logging
import secrets
import uuid
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
DEFAULT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"


class UploadError(Exception):
    """Raised when the CDN rejects or fails an upload."""


class UploadNotConfiguredError(UploadError):
    """Raised when no ImageKit credentials are configured."""


class ImageUploadConfig:
    """Configuration for ImageKit uploads from environment variables."""

    def __init__(self):
        self.private_key = os.getenv("IMAGEKIT_PRIVATE_KEY", "")
        self.url_endpoint = os.getenv("IMAGEKIT_URL_ENDPOINT", "")
        self.upload_url = os.getenv("IMAGEKIT_UPLOAD_URL", DEFAULT_UPLOAD_URL)
        self.timeout = float(os.getenv("IMAGEKIT_TIMEOUT_SECONDS", "30"))

    def is_configured(self) -> bool:
        return bool(self.private_key and self.upload_url)


def build_image_path(user_id: uuid.UUID, filename: str) -> str:
    """CDN file name: ``blog/{user_id}/{random}-{filename}``."""
    safe_name = os.path.basename(filename or "image").replace(" ", "-") or "image"
    return f"blog/{user_id}/{secrets.token_urlsafe(15)}-{safe_name}"


class ImageUploadService:
    """Uploads validated image bytes to ImageKit."""

    def __init__(self, config: Optional[ImageUploadConfig] = None):
        self.config = config or ImageUploadConfig()

    def upload_image(self, *, user_id: uuid.UUID, filename: str, content: bytes, content_type: str) -> Dict[str, Any]:
        """Upload and return ``{'url', 'file_id', 'name'}``."""
        if not self.config.is_configured():
            raise UploadNotConfiguredError("Image uploads are not configured")

        path = build_image_path(user_id, filename)
        folder, _, name = path.rpartition("/")
        try:
            response = requests.post(
                self.config.upload_url,
                auth=(self.config.private_key, ""),
                files={"file": (name, content, content_type)},
                data={
                    "fileName": name,
                    "folder": f"/{folder}",
                    "useUniqueFileName": "false",
                },
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"ImageKit upload failed for user {user_id}: {e}")
            raise UploadError(str(e)) from e
        except ValueError as e:
            logger.error(f"ImageKit returned a non-JSON response for user {user_id}: {e}")
            raise UploadError("Invalid response from image CDN") from e

        url = payload.get("url")
        if not url:
            raise UploadError("Image CDN response did not include a URL")
        logger.info(f"Uploaded image {payload.get('fileId')} for user {user_id}")
        return {"url": url, "file_id": payload.get("fileId"), "name": payload.get("name") or name}


_upload_service: Optional[ImageUploadService] = None


def get_upload_service() -> ImageUploadService:
    global _upload_service
    if _upload_service is None:
        _upload_service = ImageUploadService()
    return _upload_service
