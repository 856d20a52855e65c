"""
Computes where an image goes on its page for each fill mode.

Every function here is pure: the same inputs always give the same
LayoutResult, and nothing is rounded. Coordinates use a top-left origin,
which is what the PDF writer expects.
"""

from typing import Callable, Dict, Optional

from .page_formats import get_page_format
from .types import FillMode, LayoutResult, Margins, PageFormat


def _usable_area(page: PageFormat, margin: float):
    return page.width - margin * 2, page.height - margin * 2


def _layout_fit(img_width: float, img_height: float, page: PageFormat,
                margin: float, margins: Margins) -> LayoutResult:
    """Whole image visible, aspect ratio kept, centered in the usable area."""
    usable_width, usable_height = _usable_area(page, margin)
    scale = min(usable_width / img_width, usable_height / img_height)

    width = img_width * scale
    height = img_height * scale
    x = margin + (usable_width - width) / 2
    y = margin + (usable_height - height) / 2
    return LayoutResult(width, height, x, y, page.width, page.height, FillMode.FIT)


def _layout_stretch(img_width: float, img_height: float, page: PageFormat,
                    margin: float, margins: Margins) -> LayoutResult:
    """Usable area filled exactly, aspect ratio ignored."""
    usable_width, usable_height = _usable_area(page, margin)
    return LayoutResult(
        usable_width, usable_height, margin, margin,
        page.width, page.height, FillMode.STRETCH,
    )


def _layout_crop(img_width: float, img_height: float, page: PageFormat,
                 margin: float, margins: Margins) -> LayoutResult:
    """
    Usable area covered, aspect ratio kept.

    The larger scale factor is used, so one axis overflows the usable area
    and the offsets on that axis go negative. The page boundary clips it.
    """
    usable_width, usable_height = _usable_area(page, margin)
    scale = max(usable_width / img_width, usable_height / img_height)

    width = img_width * scale
    height = img_height * scale
    x = margin + (usable_width - width) / 2
    y = margin + (usable_height - height) / 2
    return LayoutResult(width, height, x, y, page.width, page.height, FillMode.CROP)


def _layout_custom(img_width: float, img_height: float, page: PageFormat,
                   margin: float, margins: Margins) -> LayoutResult:
    """Stretch into the area left by four independent margins."""
    usable_width = page.width - margins.left - margins.right
    usable_height = page.height - margins.top - margins.bottom
    return LayoutResult(
        usable_width, usable_height, margins.left, margins.top,
        page.width, page.height, FillMode.CUSTOM,
    )


LAYOUT_STRATEGIES: Dict[FillMode, Callable[..., LayoutResult]] = {
    FillMode.FIT: _layout_fit,
    FillMode.STRETCH: _layout_stretch,
    FillMode.CROP: _layout_crop,
    FillMode.CUSTOM: _layout_custom,
}


def compute_layout(
    img_width: float,
    img_height: float,
    page_format_name: str,
    fill_mode: FillMode = FillMode.FIT,
    margin: float = 0.0,
    margins: Optional[Margins] = None,
) -> LayoutResult:
    """
    Computes the placement rectangle for one image.

    Args:
        img_width: Image width in pixels, must be positive.
        img_height: Image height in pixels, must be positive.
        page_format_name: Key into the page format table (e.g. "A4").
        fill_mode: Which placement policy to apply.
        margin: Uniform margin in points for fit, stretch and crop.
        margins: Per-side margins in points, only used by the custom mode.

    Returns:
        The LayoutResult for the image.

    Raises:
        UnknownPageFormat: If page_format_name is not registered.
        ValueError: If an image dimension is not positive.
    """
    page = get_page_format(page_format_name)

    if img_width <= 0 or img_height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {img_width}x{img_height}")

    strategy = LAYOUT_STRATEGIES[FillMode(fill_mode)]
    return strategy(float(img_width), float(img_height), page, float(margin), margins or Margins())
