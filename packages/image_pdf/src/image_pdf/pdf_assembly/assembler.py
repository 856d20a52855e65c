"""
Builds one PDF from an ordered group of images.

Every blocking step runs in an executor and is awaited before the next one
starts, so pages always come out in group order. PyMuPDF calls share a
single worker thread.
"""

import asyncio
import contextlib
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List, Optional

import fitz  # PyMuPDF

from ..config import Settings, get_logger
from ..errors import DocumentWriteError, ImagePlacementFailure
from ..image_processing.compressor import preprocess_images
from ..layout.page_formats import get_page_format
from ..models import ImageDescriptor
from .composer import place_image

logger = get_logger(__name__)

SCRATCH_PREFIX = "img_to_pdf_"
DOCUMENT_AUTHOR = "Image to PDF Converter"
DOCUMENT_CREATOR = "image-pdf (PyMuPDF)"

# PyMuPDF is not thread-safe: every document call goes through this one worker
_pdf_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf-writer")


def remove_scratch_directory(scratch_dir: str) -> None:
    """Delete every file in the scratch directory, then the directory. Failures are only logged."""
    if not os.path.isdir(scratch_dir):
        return
    try:
        for name in os.listdir(scratch_dir):
            path = os.path.join(scratch_dir, name)
            try:
                if os.path.isdir(path):
                    shutil.rmtree(path)
                else:
                    os.remove(path)
            except OSError as e:
                logger.warning(f"Could not delete scratch file {path}: {e}")
        os.rmdir(scratch_dir)
    except OSError as e:
        logger.warning(f"Could not clean up scratch directory {scratch_dir}: {e}")


@contextlib.contextmanager
def scratch_directory(parent: Optional[str] = None) -> Iterator[str]:
    """
    Yields a fresh scratch directory owned by one document build.

    The directory is unique per call, so concurrent groups never share one,
    and it is removed on every exit path.
    """
    if parent:
        os.makedirs(parent, exist_ok=True)
    scratch_dir = tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=parent)
    try:
        yield scratch_dir
    finally:
        remove_scratch_directory(scratch_dir)


class DocumentAssembler:
    """Drives the page composer over one image group and writes the PDF."""

    def __init__(self, settings: Settings, scratch_parent: Optional[str] = None):
        self.settings = settings
        self.scratch_parent = scratch_parent

    async def build_document(self, images: List[ImageDescriptor], output_path: str,
                             title: Optional[str] = None) -> str:
        """
        Converts an ordered list of images into a PDF at output_path.

        Per-image problems (unreadable dimensions, failed compression, failed
        placement) are logged and never abort the document; the output always
        has one page per image.

        Args:
            images: The group's images in page order.
            output_path: Where the PDF is written.
            title: Title stored in the PDF metadata.

        Returns:
            output_path once the file has been fully written.

        Raises:
            UnknownPageFormat: If the configured page size is not registered.
            DocumentWriteError: If the output file cannot be created or saved.
        """
        loop = asyncio.get_event_loop()
        settings = self.settings
        title = title or os.path.splitext(os.path.basename(output_path))[0]

        get_page_format(settings.page_size)
        logger.info(f"Processing \"{title}\" with {len(images)} images...")

        with scratch_directory(self.scratch_parent) as scratch_dir:
            working_images = await loop.run_in_executor(
                None, preprocess_images, images, scratch_dir, settings
            )

            stream = await loop.run_in_executor(None, self._open_output, output_path)
            try:
                document = await loop.run_in_executor(_pdf_executor, self._create_document, title)
            except BaseException:
                stream.close()
                raise

            try:
                for index, image in enumerate(working_images, start=1):
                    logger.info(f"  Page {index}/{len(working_images)}: {image.display_name}")
                    try:
                        await loop.run_in_executor(
                            _pdf_executor, place_image, image, settings.page_size, settings, document
                        )
                    except ImagePlacementFailure as e:
                        logger.warning(f"  Skipping image {image.display_name}: {e}")

                await loop.run_in_executor(_pdf_executor, self._finalize, document, stream, output_path)
            finally:
                await loop.run_in_executor(_pdf_executor, document.close)
                stream.close()

        size_mb = os.path.getsize(output_path) / (1024 * 1024)
        logger.info(f"PDF written: {output_path} ({size_mb:.2f} MB)")
        return output_path

    @staticmethod
    def _open_output(output_path: str):
        try:
            return open(output_path, "wb")
        except OSError as e:
            raise DocumentWriteError(output_path, str(e)) from e

    @staticmethod
    def _create_document(title: str) -> fitz.Document:
        document = fitz.open()
        document.set_metadata({
            "title": f"{title} images",
            "author": DOCUMENT_AUTHOR,
            "creator": DOCUMENT_CREATOR,
            "creationDate": fitz.get_pdf_now(),
        })
        return document

    @staticmethod
    def _finalize(document: fitz.Document, stream, output_path: str) -> None:
        try:
            document.save(stream, garbage=3, deflate=True)
            stream.flush()
            os.fsync(stream.fileno())
        except Exception as e:
            raise DocumentWriteError(output_path, str(e)) from e

