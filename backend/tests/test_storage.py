from unittest.mock import patch

import cloudinary.exceptions
import pytest

from config import Settings
from errors import UploadError
from storage.backend import CloudinaryStorageBackend, UploadedImage


def _backend() -> CloudinaryStorageBackend:
    return CloudinaryStorageBackend(
        Settings(
            CLOUDINARY_CLOUD_NAME="demo",
            CLOUDINARY_API_KEY="1234",
            CLOUDINARY_API_SECRET="shh",
        )
    )


def test_signed_url_is_authenticated_and_signed():
    url = _backend().signed_url("journey/step_1")
    assert url.startswith("https://res.cloudinary.com/demo/image/authenticated/s--")
    for part in ("q_auto", "f_auto", "w_1200", "c_limit"):
        assert part in url
    assert url.endswith("/journey/step_1")


def test_signed_url_depends_on_secret():
    other = CloudinaryStorageBackend(
        Settings(CLOUDINARY_CLOUD_NAME="demo", CLOUDINARY_API_KEY="1234", CLOUDINARY_API_SECRET="other")
    )
    assert other.signed_url("journey/step_1") != _backend().signed_url("journey/step_1")


def test_signed_url_failure_returns_none():
    with patch("cloudinary.utils.cloudinary_url", side_effect=ValueError("boom")):
        assert _backend().signed_url("journey/step_1") is None


@pytest.mark.asyncio
async def test_upload_passes_fixed_options():
    result = {
        "public_id": "journey/beach",
        "secure_url": "https://res.cloudinary.com/demo/image/authenticated/v1/journey/beach.jpg",
        "width": 1024,
        "height": 768,
    }
    with patch("cloudinary.uploader.upload", return_value=result) as mock_upload:
        uploaded = await _backend().upload("data:image/png;base64,AAAA", "beach")

    assert uploaded == UploadedImage(
        public_id="journey/beach", secure_url=result["secure_url"], width=1024, height=768
    )
    args, kwargs = mock_upload.call_args
    assert args == ("data:image/png;base64,AAAA",)
    assert kwargs["folder"] == "journey"
    assert kwargs["type"] == "authenticated"
    assert kwargs["resource_type"] == "image"
    assert kwargs["overwrite"] is False
    assert kwargs["public_id"] == "beach"
    assert kwargs["cloud_name"] == "demo"


@pytest.mark.asyncio
async def test_upload_without_public_id_lets_cdn_choose():
    result = {"public_id": "journey/abc123", "secure_url": "https://x/y.jpg"}
    with patch("cloudinary.uploader.upload", return_value=result) as mock_upload:
        uploaded = await _backend().upload("data:image/png;base64,AAAA")
    assert "public_id" not in mock_upload.call_args.kwargs
    assert uploaded.width is None


@pytest.mark.asyncio
async def test_upload_failure_raises_upload_error():
    with patch(
        "cloudinary.uploader.upload",
        side_effect=cloudinary.exceptions.Error("Resource already exists"),
    ):
        with pytest.raises(UploadError) as exc_info:
            await _backend().upload("data:image/png;base64,AAAA", "beach")
    assert exc_info.value.details == "Resource already exists"
    assert exc_info.value.status_code == 500
