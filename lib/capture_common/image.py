"""
Image helpers for media materialization.

Dimensions are read from downloaded bytes when the page didn't declare them,
and the stored object's extension follows the response content type.
"""

import io
import logging

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/avif": ".avif",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
}

FORMAT_CONTENT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}

DEFAULT_EXTENSION = ".jpg"


def extension_for_content_type(content_type: str | None) -> str:
    """
    Map a response Content-Type header to a file extension.

    Parameters like "; charset=binary" are ignored. Unknown types map to .jpg.
    """
    if not content_type:
        return DEFAULT_EXTENSION
    mime = content_type.split(";", 1)[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(mime, DEFAULT_EXTENSION)


def read_image_dimensions(image_data: bytes) -> tuple[int, int] | None:
    """
    Get (width, height) of an encoded image without decoding pixel data.

    Returns:
        Tuple of (width, height), or None if Pillow can't identify the bytes
    """
    if not image_data:
        return None
    try:
        with Image.open(io.BytesIO(image_data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"Could not read image dimensions: {e}")
        return None


def sniff_content_type(image_data: bytes) -> str | None:
    """Detect the MIME type of image bytes, or None if unrecognized."""
    try:
        with Image.open(io.BytesIO(image_data)) as image:
            return FORMAT_CONTENT_TYPES.get(image.format)
    except (UnidentifiedImageError, OSError):
        return None
