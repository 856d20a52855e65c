"""
Value types shared by the layout calculator and the page composer.
"""

import enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class FillMode(str, enum.Enum):
    FIT = "fit"
    STRETCH = "stretch"
    CROP = "crop"
    CUSTOM = "custom"


class PageFormat(NamedTuple):
    """Physical page size in PDF points (1/72 inch)."""
    width: float
    height: float


class Margins(BaseModel):
    """Asymmetric page margins in points, used by the custom fill mode."""
    model_config = ConfigDict(frozen=True)

    top: float = Field(0.0, ge=0.0)
    bottom: float = Field(0.0, ge=0.0)
    left: float = Field(0.0, ge=0.0)
    right: float = Field(0.0, ge=0.0)


class LayoutResult(NamedTuple):
    """
    Placement of one image on its page.

    (x, y, width, height) is the image rectangle with a top-left origin;
    page_width/page_height are always the full page, for the background fill.
    """
    width: float
    height: float
    x: float
    y: float
    page_width: float
    page_height: float
    fill_mode: FillMode
