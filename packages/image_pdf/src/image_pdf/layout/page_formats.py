"""
Static table of supported page sizes.
"""

from typing import Dict

from ..errors import UnknownPageFormat
from .types import PageFormat

PAGE_FORMATS: Dict[str, PageFormat] = {
    "A4": PageFormat(595.28, 841.89),
    "A3": PageFormat(841.89, 1190.55),
    "Letter": PageFormat(612.0, 792.0),
    "Legal": PageFormat(612.0, 1008.0),
}


def get_page_format(name: str) -> PageFormat:
    """Look up a page format by name, raising UnknownPageFormat if it is not registered."""
    try:
        return PAGE_FORMATS[name]
    except KeyError:
        raise UnknownPageFormat(name) from None
