"""Validation helpers for user supplied plant images."""

import io
import mimetypes
from typing import Optional

from PIL import Image, UnidentifiedImageError

from models.scan_errors import InvalidScanInput

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/bmp",
    "image/gif",
}


class UnsupportedImageType(InvalidScanInput):
    """Raised when a file is not one of the accepted image formats."""


def resolve_image_type(filename: Optional[str], content_type: Optional[str]) -> str:
    """Return the normalized image MIME type for an upload.

    The declared content type wins; when it is missing or generic
    (application/octet-stream) the type is guessed from the filename.

    Raises:
        UnsupportedImageType: If no accepted image type can be determined.
    """
    declared = (content_type or "").lower().split(";", 1)[0].strip()
    if declared and declared != "application/octet-stream":
        if declared not in ALLOWED_IMAGE_TYPES:
            raise UnsupportedImageType(f"Unsupported image content type: {content_type}")
        return "image/jpeg" if declared == "image/jpg" else declared

    guessed, _ = mimetypes.guess_type(filename or "")
    if guessed not in ALLOWED_IMAGE_TYPES:
        raise UnsupportedImageType("Unsupported or missing image content type.")
    return guessed


def ensure_decodable_image(data: bytes) -> None:
    """Check that `data` fully decodes as an image with Pillow.

    `verify()` only checks the header and structure, so the pixel data is
    loaded from a fresh handle as well; truncated files fail here.

    Raises:
        InvalidScanInput: If the bytes are empty, not an image or truncated.
    """
    if not data:
        raise InvalidScanInput("Uploaded image is empty.")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
        with Image.open(io.BytesIO(data)) as img:
            img.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise InvalidScanInput("Uploaded file is not a readable image.") from exc
