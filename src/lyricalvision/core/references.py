"""Reference image intake.

Users may attach up to three reference images that are sent ahead of the text
prompt to steer the look of every stanza.  Each selected file is decoded on a
worker thread independently of the others; decoded images are appended in the
order the decodes complete and the collection is truncated back to the cap
after every append, so the library never holds more than
``max_images`` entries.

Usage
-----
::

    library = ReferenceImageLibrary(max_images=3)
    result = await library.add_files([Path("hero.png"), ReferenceUpload(data=raw)])
    library.remove(result.added[0].id)
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import InvalidReferenceImageError
from .models import ReferenceImage

logger = logging.getLogger(__name__)

MAX_REFERENCE_IMAGES = 3


@dataclass(frozen=True)
class ReferenceUpload:
    """Raw bytes of a selected file, as received from an upload."""

    data: bytes
    mime_type: str | None = None
    filename: str = ""


@dataclass
class IntakeResult:
    """Outcome of one :meth:`ReferenceImageLibrary.add_files` call.

    Attributes:
        added: Images from this call still present after truncation.
        rejected: One message per file that could not be decoded.
    """

    added: list[ReferenceImage] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)


def _sniff_mime_type(data: bytes) -> str:
    """Return the MIME type Pillow detects for *data*.

    Raises:
        InvalidReferenceImageError: If Pillow cannot identify an image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise InvalidReferenceImageError(f"Not a readable image: {e}") from e

    mime_type = Image.MIME.get(image_format or "")
    if not mime_type:
        raise InvalidReferenceImageError(f"Unsupported image format: {image_format}")
    return mime_type


def decode_reference(source: Path | ReferenceUpload) -> ReferenceImage:
    """Read *source* and encode it as a :class:`ReferenceImage`.

    Blocking; callers on the event loop should use :func:`decode_reference_async`.

    Args:
        source: A file path, or uploaded bytes with an optional declared
            MIME type.  A declared MIME type is trusted; otherwise it is
            sniffed from the payload.

    Raises:
        InvalidReferenceImageError: If the file cannot be read or is not an image.
    """
    if isinstance(source, Path):
        try:
            data = source.read_bytes()
        except OSError as e:
            raise InvalidReferenceImageError(f"Could not read {source.name}: {e}") from e
        declared = None
    else:
        data = source.data
        declared = source.mime_type

    if not data:
        raise InvalidReferenceImageError("Empty file")

    if declared and declared.startswith("image/"):
        mime_type = declared
    else:
        mime_type = _sniff_mime_type(data)

    return ReferenceImage(data=base64.b64encode(data).decode("ascii"), mime_type=mime_type)


async def decode_reference_async(source: Path | ReferenceUpload) -> ReferenceImage:
    return await asyncio.to_thread(decode_reference, source)


def _source_name(source: Path | ReferenceUpload) -> str:
    if isinstance(source, Path):
        return source.name
    return source.filename or "upload"


class ReferenceImageLibrary:
    """Ordered, capped collection of reference images for one session."""

    def __init__(self, max_images: int = MAX_REFERENCE_IMAGES) -> None:
        self.max_images = max_images
        self._images: list[ReferenceImage] = []

    @property
    def images(self) -> list[ReferenceImage]:
        """A copy of the current images in attachment order."""
        return list(self._images)

    def __len__(self) -> int:
        return len(self._images)

    def append(self, image: ReferenceImage) -> None:
        """Append *image*, then truncate to the first ``max_images`` entries."""
        self._images.append(image)
        if len(self._images) > self.max_images:
            dropped = self._images[self.max_images :]
            self._images = self._images[: self.max_images]
            logger.info(f"Reference cap reached, dropped {len(dropped)} image(s)")

    async def add_files(self, sources: Iterable[Path | ReferenceUpload]) -> IntakeResult:
        """Decode every source concurrently and append each as it completes.

        A source that fails to decode is reported in ``rejected`` and does not
        affect the others.
        """
        sources = list(sources)
        result = IntakeResult()
        added: list[ReferenceImage] = []

        async def intake(source: Path | ReferenceUpload) -> None:
            try:
                image = await decode_reference_async(source)
            except InvalidReferenceImageError as e:
                logger.warning(f"Rejected reference image {_source_name(source)}: {e}")
                result.rejected.append(f"{_source_name(source)}: {e}")
                return
            self.append(image)
            added.append(image)

        await asyncio.gather(*(intake(source) for source in sources))

        current_ids = {image.id for image in self._images}
        result.added = [image for image in added if image.id in current_ids]
        logger.info(
            f"Reference intake: {len(result.added)} added, {len(result.rejected)} rejected, "
            f"{len(self._images)}/{self.max_images} in library"
        )
        return result

    def remove(self, image_id: str) -> bool:
        """Remove the image with *image_id*.  Returns True if one was removed."""
        before = len(self._images)
        self._images = [image for image in self._images if image.id != image_id]
        return len(self._images) != before

    def clear(self) -> None:
        self._images.clear()
