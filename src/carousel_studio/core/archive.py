"""Bundle generated slide images into one zip download."""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime

from .errors import NoImages
from .models import ImageResult

logger = logging.getLogger(__name__)

MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


def extension_for(mime_type: str) -> str:
    """File extension for ``mime_type``, ``png`` when unknown."""
    return MIME_EXTENSIONS.get(mime_type.lower().split(";")[0].strip(), "png")


@dataclass(frozen=True)
class Archive:
    """A finished zip bundle ready to download."""

    filename: str
    data: bytes
    entries: tuple[str, ...]

    media_type = "application/zip"


class ArchiveExporter:
    """Build a zip of every present image, named by 1-based slide position."""

    def __init__(self, prefix: str = "carousel"):
        self.prefix = prefix

    def export(self, images: list[ImageResult | None], now: datetime | None = None) -> Archive:
        """Bundle ``images`` into a zip archive.

        Args:
            images: Images indexed by slide position; None marks a slide
                without an image.
            now: Timestamp used in the bundle filename (defaults to now).

        Returns:
            The complete archive.  Entries are ``image_<n>.<ext>`` in
            ascending slide order.

        Raises:
            NoImages: If every entry is None.
        """
        present = [(index, image) for index, image in enumerate(images) if image is not None]
        if not present:
            raise NoImages()

        # The archive is assembled in memory and only returned once closed.
        buffer = io.BytesIO()
        entries: list[str] = []
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for index, image in present:
                name = f"image_{index + 1}.{extension_for(image.mime_type)}"
                zf.writestr(name, image.data)
                entries.append(name)

        stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        archive = Archive(
            filename=f"{self.prefix}_{stamp}.zip",
            data=buffer.getvalue(),
            entries=tuple(entries),
        )
        logger.info(f"Exported {len(entries)} images to {archive.filename}")
        return archive
