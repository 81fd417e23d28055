"""File based image source: validated selection plus a local preview."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from models.scan_errors import InvalidScanInput
from models.scan_models import CapturedImage
from services.thumbnail_generator import ThumbnailGenerator
from utils.media_validation import ensure_decodable_image, resolve_image_type

LOGGER = logging.getLogger(__name__)


@dataclass
class FilePreview:
    """Locally renderable preview of a selected file.

    `data_url` is cleared when the preview is revoked so a stale preview can
    never be rendered after a newer selection.
    """

    data_url: Optional[str]
    handle: str = field(default_factory=lambda: uuid.uuid4().hex)
    revoked: bool = False

    def revoke(self) -> None:
        self.revoked = True
        self.data_url = None


class FileImageSource:
    """Hold at most one user selected image and its preview."""

    def __init__(self, thumbnails: Optional[ThumbnailGenerator] = None) -> None:
        self._thumbnails = thumbnails or ThumbnailGenerator()
        self._image: Optional[CapturedImage] = None
        self._preview: Optional[FilePreview] = None

    @property
    def image(self) -> Optional[CapturedImage]:
        return self._image

    @property
    def preview(self) -> Optional[FilePreview]:
        return self._preview

    def select(self, data: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> FilePreview:
        """Validate a selected file and replace the current selection.

        The previous preview is revoked only once the new file has been
        validated; a rejected file leaves the current selection intact.

        Raises:
            InvalidScanInput: If the file is empty, not an accepted type or not decodable.
        """
        image_type = resolve_image_type(filename, content_type)
        ensure_decodable_image(data)
        try:
            preview = FilePreview(data_url=self._thumbnails.create_preview_data_url(data))
        except ValueError as exc:
            raise InvalidScanInput("Uploaded file is not a readable image.") from exc

        self.discard()
        self._image = CapturedImage(data=data, content_type=image_type, filename=filename)
        self._preview = preview
        LOGGER.debug("Selected %s (%s, %d bytes), preview %s", filename, image_type, len(data), preview.handle)
        return preview

    def discard(self) -> None:
        """Drop the current selection and revoke its preview."""
        if self._preview is not None:
            self._preview.revoke()
        self._preview = None
        self._image = None
