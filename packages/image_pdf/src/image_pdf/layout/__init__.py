"""
Page geometry: page formats, fill modes and the placement calculator.
"""

from .types import FillMode, LayoutResult, Margins, PageFormat
from .page_formats import PAGE_FORMATS, get_page_format
from .calculator import compute_layout

__all__ = [
    "FillMode",
    "LayoutResult",
    "Margins",
    "PageFormat",
    "PAGE_FORMATS",
    "get_page_format",
    "compute_layout",
]
