"""
Task Manager API - Avatar Processing

Validation and normalization of uploaded profile pictures with Pillow.
"""

import io
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from task_manager.config import settings
from task_manager.errors import AvatarTooLargeError, UnsupportedAvatarError

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}
ALLOWED_FORMATS = {"JPEG", "PNG"}
AVATAR_MEDIA_TYPE = "image/png"


def check_avatar_upload(filename: Optional[str], data: bytes, max_bytes: Optional[int] = None) -> None:
    """Reject uploads that are too large or do not look like a JPEG/PNG file name."""
    limit = settings.AVATAR_MAX_BYTES if max_bytes is None else max_bytes
    if len(data) > limit:
        raise AvatarTooLargeError(limit)
    if not filename or Path(filename).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise UnsupportedAvatarError()


def normalize_avatar(data: bytes, size: Optional[int] = None, max_pixels: Optional[int] = None) -> bytes:
    """
    Decode an uploaded JPEG/PNG and re-encode it as a square PNG.

    The image is scaled to cover a size x size box and center-cropped.
    Images with more than max_pixels pixels are rejected from their header,
    before any pixel data is decoded.
    """
    edge = settings.AVATAR_SIZE if size is None else size
    pixel_limit = settings.AVATAR_MAX_PIXELS if max_pixels is None else max_pixels
    try:
        with Image.open(io.BytesIO(data)) as image:
            if image.format not in ALLOWED_FORMATS:
                raise UnsupportedAvatarError()
            if image.width * image.height > pixel_limit:
                raise UnsupportedAvatarError("Image dimensions are too large.")
            image.load()
            if image.mode not in ("RGB", "RGBA"):
                image = image.convert("RGBA")
            fitted = ImageOps.fit(image, (edge, edge))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise UnsupportedAvatarError("Uploaded file is not a valid image.") from exc

    buffer = io.BytesIO()
    fitted.save(buffer, format="PNG")
    return buffer.getvalue()
