"""
Composes one PDF page per image with PyMuPDF.
"""

from typing import Tuple

import fitz  # PyMuPDF
from PIL import ImageColor

from ..config import Settings, get_logger
from ..errors import DimensionProbeFailure, ImagePlacementFailure
from ..image_processing.probe import FALLBACK_DIMENSIONS, ImageDimensions, get_image_dimensions
from ..layout.calculator import compute_layout
from ..layout.types import LayoutResult
from ..models import ImageDescriptor

logger = get_logger(__name__)

LABEL_FONT_SIZE = 8
LABEL_COLOR = (0.4, 0.4, 0.4)


def color_to_rgb(color: str) -> Tuple[float, float, float]:
    """Convert '#RRGGBB' or a CSS colour name to the 0..1 floats PyMuPDF expects."""
    rgb = ImageColor.getrgb(color)
    return rgb[0] / 255, rgb[1] / 255, rgb[2] / 255


def probe_dimensions(image_path: str) -> ImageDimensions:
    """get_image_dimensions with the 800x600 fallback for unreadable images."""
    try:
        return get_image_dimensions(image_path)
    except DimensionProbeFailure as e:
        logger.warning(f"  {e}; using fallback {FALLBACK_DIMENSIONS.width}x{FALLBACK_DIMENSIONS.height}")
        return FALLBACK_DIMENSIONS


def place_image(image: ImageDescriptor, page_format_name: str, settings: Settings,
                document: fitz.Document) -> LayoutResult:
    """
    Adds one page for the image: background fill, then the image itself.

    The page is added before the image is inserted, so a failed insertion
    still leaves a background-only page and page numbering stays aligned
    with the group order.

    Args:
        image: Descriptor whose working_path is embedded.
        page_format_name: Key into the page format table.
        settings: Supplies fill mode, margins, background colour and label toggle.
        document: Open PyMuPDF document to append to.

    Returns:
        The layout that was used.

    Raises:
        UnknownPageFormat: If the page format is not registered (no page is added).
        ImagePlacementFailure: If the image could not be embedded (the page is kept).
    """
    dimensions = probe_dimensions(image.working_path)
    layout = compute_layout(
        dimensions.width,
        dimensions.height,
        page_format_name,
        settings.fill_mode,
        margin=settings.margin,
        margins=settings.custom_margin,
    )

    page = document.new_page(width=layout.page_width, height=layout.page_height)
    page.draw_rect(
        fitz.Rect(0, 0, layout.page_width, layout.page_height),
        color=None,
        fill=color_to_rgb(settings.background_color),
        width=0,
    )

    target = fitz.Rect(layout.x, layout.y, layout.x + layout.width, layout.y + layout.height)
    try:
        page.insert_image(target, filename=image.working_path, keep_proportion=False)
    except Exception as e:
        raise ImagePlacementFailure(image.working_path, str(e)) from e

    if settings.show_filename:
        page.insert_text(
            fitz.Point(4, layout.page_height - 4),
            image.display_name,
            fontsize=LABEL_FONT_SIZE,
            color=LABEL_COLOR,
        )

    return layout
