"""
Pytest configuration and shared fixtures for all tests.
"""

import os
import sys
import tempfile
from typing import Callable

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)
sys.path.insert(0, os.path.join(PROJECT_ROOT, "packages", "image_pdf", "src"))

from image_pdf.config import Settings
from image_pdf.layout.types import FillMode, Margins
from image_pdf.models import ImageDescriptor


@pytest.fixture
def temp_dir():
    """Create a temporary directory for file operations."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def make_image(temp_dir) -> Callable[..., str]:
    """Factory writing a real image file with Pillow and returning its path."""
    from PIL import Image

    def _make_image(name: str = "image.png", size=(100, 80), color="red",
                    mode: str = "RGB", directory: str = None, exif_orientation: int = None) -> str:
        directory = directory or temp_dir
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, name)
        img = Image.new(mode, size, color=color)
        ext = os.path.splitext(name)[1].lower()
        image_format = {".jpg": "JPEG", ".jpeg": "JPEG", ".png": "PNG", ".gif": "GIF",
                        ".bmp": "BMP", ".webp": "WEBP"}.get(ext, "PNG")
        if exif_orientation is not None:
            exif = Image.Exif()
            exif[0x0112] = exif_orientation
            img.save(path, image_format, exif=exif)
        else:
            img.save(path, image_format)
        return path

    return _make_image


@pytest.fixture
def make_descriptor(make_image) -> Callable[..., ImageDescriptor]:
    """Factory creating an image on disk and wrapping it in an ImageDescriptor."""

    def _make_descriptor(name: str = "image.png", **kwargs) -> ImageDescriptor:
        path = make_image(name, **kwargs)
        return ImageDescriptor.from_path(os.path.basename(path), path, os.path.getsize(path))

    return _make_descriptor


@pytest.fixture
def corrupt_image(temp_dir) -> ImageDescriptor:
    """A .jpg file whose content is not an image."""
    path = os.path.join(temp_dir, "broken.jpg")
    with open(path, "wb") as f:
        f.write(b"this is not a jpeg")
    return ImageDescriptor.from_path("broken.jpg", path, os.path.getsize(path))


@pytest.fixture
def settings(temp_dir) -> Settings:
    """Fit mode on A4, no margins, no pre-compression."""
    output_dir = os.path.join(temp_dir, "output")
    os.makedirs(output_dir, exist_ok=True)
    return Settings(
        source_dir=temp_dir,
        output_dir=output_dir,
        page_size="A4",
        fill_mode=FillMode.FIT,
        margin=0,
        custom_margin=Margins(top=15, bottom=15, left=0, right=0),
        pre_compress_images=False,
    )


@pytest.fixture
def compress_settings(settings) -> Settings:
    """Same as settings but with pre-compression on and small size limits."""
    return settings.model_copy(update={
        "pre_compress_images": True,
        "max_image_width": 50,
        "max_image_height": 50,
        "jpeg_quality": 70,
    })
