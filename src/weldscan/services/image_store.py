"""Service layer – temporary storage for uploaded and captured images."""

from __future__ import annotations

import io
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from src.weldscan.schemas.inspection import ImageRef

logger = logging.getLogger(__name__)

_SUFFIXES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
}


@dataclass(frozen=True)
class StoredImage:
    ref: ImageRef
    path: Path
    content: bytes
    natural_width: int
    natural_height: int


class TemporaryImageStore:
    """
    Keeps the images the station is currently showing on disk.

    Every image gets a unique id and a URL under ``/inspection/images``.
    Callers must ``release`` an image once it is superseded; ``release_all``
    runs at shutdown.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory
        self._images: dict[str, StoredImage] = {}

    def create(self, content: bytes, filename: str, media_type: str) -> StoredImage:
        """Store *content* and return its handle. Raises ``ValueError`` for non-images."""
        try:
            with Image.open(io.BytesIO(content)) as img:
                natural_width, natural_height = img.size
        except Exception as exc:
            raise ValueError(f"Invalid image: {exc}") from exc

        image_id = uuid.uuid4().hex
        suffix = Path(filename).suffix.lower() or _SUFFIXES.get(media_type, ".img")
        path = self._directory / f"{image_id}{suffix}"
        path.write_bytes(content)

        stored = StoredImage(
            ref=ImageRef(
                id=image_id,
                url=f"/inspection/images/{image_id}",
                filename=filename,
                media_type=media_type,
            ),
            path=path,
            content=content,
            natural_width=natural_width,
            natural_height=natural_height,
        )
        self._images[image_id] = stored
        logger.debug("Stored image %s (%dx%d)", path.name, natural_width, natural_height)
        return stored

    def get(self, image_id: str) -> StoredImage | None:
        return self._images.get(image_id)

    def release(self, image_id: str) -> None:
        """Forget the image and delete its file. Unknown ids are ignored."""
        stored = self._images.pop(image_id, None)
        if stored is None:
            return
        try:
            stored.path.unlink(missing_ok=True)
            logger.info("🗑️  Released image: %s", stored.path.name)
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", stored.path.name, exc)

    def release_all(self) -> None:
        for image_id in list(self._images):
            self.release(image_id)

    def __len__(self) -> int:
        return len(self._images)
