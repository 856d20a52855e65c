"""
Pre-compression of source images into a scratch directory.

Each image is optionally rotated according to its EXIF orientation, shrunk to
fit the configured maximum size, flattened to RGB and re-encoded as JPEG.
The originals are never touched.
"""

import os
from typing import List

from PIL import Image, ImageOps

from ..config import Settings, get_logger
from ..errors import CompressionFailure
from ..models import ImageDescriptor

logger = get_logger(__name__)

MB = 1024 * 1024

# Formats MuPDF cannot embed directly; these are re-encoded even with
# pre-compression turned off
UNEMBEDDABLE_FORMATS = frozenset({".webp"})


def _flatten_to_rgb(img: Image.Image) -> Image.Image:
    """JPEG has no alpha channel: composite transparent images onto white."""
    if img.mode in ("RGBA", "LA", "P"):
        if img.mode == "P":
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1] if img.mode in ("RGBA", "LA") else None)
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def compress_image(image_path: str, scratch_dir: str, settings: Settings, index: int = 0) -> str:
    """
    Re-encodes one image as a JPEG working copy.

    Args:
        image_path: The original image.
        scratch_dir: Directory that receives the working copy.
        settings: Supplies auto_rotate, max_image_width/height and jpeg_quality.
        index: Position in the group, prefixed to the output name so that
            "scan.png" and "scan.jpg" do not overwrite each other.

    Returns:
        Path of the compressed copy.

    Raises:
        CompressionFailure: On any decode, transform or encode error.
    """
    stem = os.path.splitext(os.path.basename(image_path))[0]
    output_path = os.path.join(scratch_dir, f"{index:04d}_{stem}_compressed.jpg")

    try:
        with Image.open(image_path) as original:
            logger.info(
                f"  Compressing: {os.path.basename(image_path)} "
                f"({os.path.getsize(image_path) / MB:.2f}MB, {original.width}x{original.height})"
            )
            img = original
            if settings.auto_rotate:
                img = ImageOps.exif_transpose(img)

            if img.width > settings.max_image_width or img.height > settings.max_image_height:
                # thumbnail keeps the aspect ratio and never enlarges
                img = img.copy()
                img.thumbnail(
                    (settings.max_image_width, settings.max_image_height),
                    Image.Resampling.LANCZOS,
                )

            img = _flatten_to_rgb(img)
            img.save(
                output_path,
                "JPEG",
                quality=settings.jpeg_quality,
                optimize=True,
                progressive=True,
            )
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        if os.path.exists(output_path):
            os.remove(output_path)
        raise CompressionFailure(image_path, str(e)) from e

    return output_path


def preprocess_image(image: ImageDescriptor, scratch_dir: str, settings: Settings, index: int = 0) -> ImageDescriptor:
    """
    Compresses one image, falling back to the original file on failure.

    Returns:
        A descriptor whose working_path is the compressed copy, or the
        unchanged descriptor (was_preprocessed False) if compression failed.
    """
    try:
        compressed_path = compress_image(image.source_path, scratch_dir, settings, index)
    except CompressionFailure as e:
        logger.warning(f"  {e}; using original file")
        return image

    original_size = image.file_size_bytes
    compressed_size = os.path.getsize(compressed_path)
    ratio = (original_size - compressed_size) / original_size * 100 if original_size else 0.0
    logger.info(f"  Compressed: {compressed_size / MB:.2f}MB (reduced {ratio:.1f}%)")
    return image.with_working_copy(compressed_path)


def _needs_conversion(image: ImageDescriptor) -> bool:
    return os.path.splitext(image.source_path)[1].lower() in UNEMBEDDABLE_FORMATS


def preprocess_images(images: List[ImageDescriptor], scratch_dir: str, settings: Settings) -> List[ImageDescriptor]:
    """
    Runs preprocess_image over a group, strictly in order.

    When pre-compression is disabled only images in UNEMBEDDABLE_FORMATS
    are re-encoded; everything else is returned unchanged. Logs the total
    size before and after.
    """
    if not settings.pre_compress_images:
        return [
            preprocess_image(image, scratch_dir, settings, index) if _needs_conversion(image) else image
            for index, image in enumerate(images)
        ]

    logger.info("Pre-compressing images...")
    processed = []
    total_original = 0
    total_compressed = 0
    for index, image in enumerate(images):
        result = preprocess_image(image, scratch_dir, settings, index)
        processed.append(result)
        total_original += image.file_size_bytes
        total_compressed += (
            os.path.getsize(result.working_path) if result.was_preprocessed else image.file_size_bytes
        )

    ratio = (total_original - total_compressed) / total_original * 100 if total_original else 0.0
    logger.info(
        f"Compression summary: {total_original / MB:.2f}MB -> {total_compressed / MB:.2f}MB "
        f"(reduced {ratio:.1f}%)"
    )
    return processed
