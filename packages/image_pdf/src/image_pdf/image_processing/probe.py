"""
Reads image pixel dimensions without decoding the pixel data.
"""

from typing import NamedTuple

from PIL import Image

from ..errors import DimensionProbeFailure


class ImageDimensions(NamedTuple):
    width: int
    height: int


FALLBACK_DIMENSIONS = ImageDimensions(800, 600)


def get_image_dimensions(image_path: str) -> ImageDimensions:
    """
    Returns the pixel size of an image file.

    Pillow only parses the header here, so this is cheap even for large scans.

    Raises:
        DimensionProbeFailure: If the file is missing, unreadable, or not an image.
    """
    try:
        with Image.open(image_path) as img:
            width, height = img.size
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise DimensionProbeFailure(image_path, str(e)) from e

    if width <= 0 or height <= 0:
        raise DimensionProbeFailure(image_path, f"invalid size {width}x{height}")
    return ImageDimensions(width, height)
