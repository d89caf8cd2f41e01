"""Image payload helpers for AI requests.

Uploads are sniffed with Pillow, auto-oriented when EXIF says so, and encoded
as base64 inline-data parts. Data URLs coming back from the model (or from
the browser) are split into MIME type and payload.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from app.services.ai.common.contracts import Part
from app.services.ai.common.errors import ImagePayloadError

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------

SUPPORTED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif", "image/bmp", "image/tiff"}

_PIL_FORMAT_TO_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}

# EXIF orientation tag
_ORIENTATION_TAG = 0x0112

_DATA_URL_MIME = re.compile(r":(.*?);")


@dataclass(frozen=True)
class ImagePayload:
    """An image ready to be sent as an inline-data part."""

    mime_type: str
    data: str
    width: int = 0
    height: int = 0

    def to_part(self) -> Part:
        return Part.from_inline(self.mime_type, self.data)

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)


def _reorient(img: Image.Image, fmt: str) -> Optional[bytes]:
    """Re-encode *img* upright if its EXIF orientation is not the identity."""
    orientation = img.getexif().get(_ORIENTATION_TAG, 1)
    if orientation in (None, 1):
        return None
    upright = ImageOps.exif_transpose(img)
    buf = io.BytesIO()
    upright.save(buf, format=fmt)
    return buf.getvalue()


def encode_image(
    content: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> ImagePayload:
    """Validate *content* as an image and encode it for the model.

    The MIME type comes from the decoded image, not from *content_type*;
    the declared type is only logged when it disagrees.
    """
    if not content:
        raise ImagePayloadError("Uploaded file is empty")

    try:
        img = Image.open(io.BytesIO(content))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImagePayloadError(f"Could not read {filename or 'upload'} as an image") from exc

    fmt = img.format or ""
    mime_type = _PIL_FORMAT_TO_MIME.get(fmt)
    if mime_type is None or mime_type not in SUPPORTED_MIME_TYPES:
        raise ImagePayloadError(f"Unsupported image format: {fmt or 'unknown'}")

    if content_type and content_type.lower() != mime_type:
        logger.info("Declared type %s for %s differs from detected %s", content_type, filename, mime_type)

    width, height = img.size
    reoriented = _reorient(img, fmt)
    if reoriented is not None:
        content = reoriented
        width, height = Image.open(io.BytesIO(content)).size
        logger.debug("Re-oriented %s from EXIF", filename)

    return ImagePayload(
        mime_type=mime_type,
        data=base64.b64encode(content).decode("ascii"),
        width=width,
        height=height,
    )


def parse_data_url(data_url: str) -> ImagePayload:
    """Split ``data:<mime>;base64,<data>`` into an ``ImagePayload``."""
    head, sep, data = data_url.partition(",")
    if not sep:
        raise ImagePayloadError("Invalid data URL")
    mime_match = _DATA_URL_MIME.search(head)
    if not mime_match or not mime_match.group(1):
        raise ImagePayloadError("Could not parse MIME type from data URL")
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImagePayloadError("Data URL payload is not valid base64") from exc
    return ImagePayload(mime_type=mime_match.group(1), data=data)
