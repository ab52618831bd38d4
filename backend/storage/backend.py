import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import cloudinary.uploader
import cloudinary.utils

from config import Settings, settings
from errors import UploadError

logger = logging.getLogger(__name__)

UPLOAD_FOLDER = "journey"
DELIVERY_TYPE = "authenticated"
DELIVERY_TRANSFORMATION = [
    {"quality": "auto", "fetch_format": "auto"},
    {"width": 1200, "crop": "limit"},
]


@dataclass(frozen=True)
class UploadedImage:
    public_id: str
    secure_url: str
    width: int | None
    height: int | None


class ImageStorageBackend(ABC):
    @abstractmethod
    def signed_url(self, public_id: str) -> str | None:
        """Return a signed delivery URL, or None if one cannot be built."""

    @abstractmethod
    async def upload(self, image_data: str, public_id: str | None = None) -> UploadedImage:
        """Store an image (data URI or remote URL) and describe the stored asset."""


class CloudinaryStorageBackend(ImageStorageBackend):
    def __init__(self, config: Settings = settings):
        self.credentials = {
            "cloud_name": config.CLOUDINARY_CLOUD_NAME,
            "api_key": config.CLOUDINARY_API_KEY,
            "api_secret": config.CLOUDINARY_API_SECRET,
        }

    @property
    def cloud_name(self) -> str:
        return self.credentials["cloud_name"]

    def signed_url(self, public_id: str) -> str | None:
        try:
            url, _options = cloudinary.utils.cloudinary_url(
                public_id,
                type=DELIVERY_TYPE,
                sign_url=True,
                secure=True,
                transformation=DELIVERY_TRANSFORMATION,
                **self.credentials,
            )
        except Exception:
            logger.exception("Error generating signed URL for %s", public_id)
            return None
        return url

    def _upload(self, image_data: str, public_id: str | None) -> dict:
        options = {
            "folder": UPLOAD_FOLDER,
            "type": DELIVERY_TYPE,
            "resource_type": "image",
            "overwrite": False,
            **self.credentials,
        }
        if public_id:
            options["public_id"] = public_id
        return cloudinary.uploader.upload(image_data, **options)

    async def upload(self, image_data: str, public_id: str | None = None) -> UploadedImage:
        try:
            result = await asyncio.to_thread(self._upload, image_data, public_id)
        except Exception as e:
            logger.exception("Upload to Cloudinary failed")
            raise UploadError("Failed to upload image", details=str(e)) from e

        return UploadedImage(
            public_id=result["public_id"],
            secure_url=result["secure_url"],
            width=result.get("width"),
            height=result.get("height"),
        )
