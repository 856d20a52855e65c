"""
Centralized configuration and logging setup for the converter.

Settings are layered: a preset is the base, then environment variables,
then a JSON config file, then command-line flags. The merged Settings
object is frozen and shared read-only for the whole run.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import find_dotenv, load_dotenv
from PIL import ImageColor
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .layout.types import FillMode, Margins

ENV_SOURCE_DIR = "IMG_TO_PDF_SOURCE_DIR"
ENV_OUTPUT_DIR = "IMG_TO_PDF_OUTPUT_DIR"
ENV_CONFIG_PATH = "IMG_TO_PDF_CONFIG"

DEFAULT_SUPPORTED_FORMATS = [".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"]

_env_loaded = False


def load_env() -> None:
    """Load environment variables from a .env file in the working directory (only once)."""
    global _env_loaded
    if _env_loaded:
        return

    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path)
    _env_loaded = True


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


logger = get_logger(__name__)


class Settings(BaseModel):
    """Immutable snapshot of everything a conversion run needs."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    source_dir: str = Field("~/Downloads/img-to-pdf", alias="sourceDir")
    output_dir: str = Field("~/Downloads", alias="outputDir")
    supported_formats: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_FORMATS), alias="supportedFormats"
    )
    page_size: str = Field("A4", alias="pageSize")
    margin: float = Field(0.0, ge=0.0, validation_alias=AliasChoices("margin", "minimumMargin"))
    fill_mode: FillMode = Field(FillMode.CUSTOM, alias="fillMode")
    custom_margin: Margins = Field(
        default_factory=lambda: Margins(top=15, bottom=15, left=0, right=0), alias="customMargin"
    )
    background_color: str = Field("#FFFFFF", alias="backgroundColor")
    show_filename: bool = Field(False, alias="showFilename")
    pre_compress_images: bool = Field(True, alias="preCompressImages")
    auto_rotate: bool = Field(True, alias="autoRotate")
    max_image_width: int = Field(1200, gt=0, alias="maxImageWidth")
    max_image_height: int = Field(1600, gt=0, alias="maxImageHeight")
    jpeg_quality: int = Field(80, ge=1, le=100, alias="jpegQuality")
    max_parallel_groups: int = Field(1, ge=1, alias="maxParallelGroups")

    @field_validator("supported_formats")
    @classmethod
    def normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized = []
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        if not normalized:
            raise ValueError("at least one supported format is required")
        return normalized

    @field_validator("background_color")
    @classmethod
    def check_color(cls, value: str) -> str:
        # Raises ValueError for anything Pillow cannot parse
        ImageColor.getrgb(value)
        return value


DEFAULT_SETTINGS = Settings()

# Sheet music scans: no side margins, a little space top and bottom
MUSIC_SHEET_SETTINGS = DEFAULT_SETTINGS.model_copy(update={
    "fill_mode": FillMode.CUSTOM,
    "custom_margin": Margins(top=15, bottom=15, left=0, right=0),
    "pre_compress_images": True,
    "auto_rotate": True,
    "jpeg_quality": 85,
})

HIGH_QUALITY_SETTINGS = DEFAULT_SETTINGS.model_copy(update={
    "fill_mode": FillMode.FIT,
    "margin": 10.0,
    "jpeg_quality": 95,
    "max_image_width": 2400,
    "max_image_height": 3200,
    "pre_compress_images": False,
})

COMPACT_SETTINGS = DEFAULT_SETTINGS.model_copy(update={
    "fill_mode": FillMode.CUSTOM,
    "custom_margin": Margins(top=5, bottom=5, left=0, right=0),
    "jpeg_quality": 70,
    "max_image_width": 800,
    "max_image_height": 1200,
    "pre_compress_images": True,
})

PRESETS: Dict[str, Settings] = {
    "music": MUSIC_SHEET_SETTINGS,
    "high-quality": HIGH_QUALITY_SETTINGS,
    "compact": COMPACT_SETTINGS,
}

DEFAULT_PRESET = "music"


def get_preset(name: str) -> Settings:
    """Return the named preset, raising ConfigurationError for unknown names."""
    try:
        return PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown preset: {name} (choose from {', '.join(PRESETS)})"
        ) from None


def load_from_env() -> Dict[str, Any]:
    """Collect the source/output directory overrides from the environment."""
    load_env()
    overrides: Dict[str, Any] = {}
    if os.getenv(ENV_SOURCE_DIR):
        overrides["source_dir"] = os.getenv(ENV_SOURCE_DIR)
    if os.getenv(ENV_OUTPUT_DIR):
        overrides["output_dir"] = os.getenv(ENV_OUTPUT_DIR)
    return overrides


def load_config_file(config_path: str) -> Dict[str, Any]:
    """
    Reads a JSON config file.

    Keys may use the camelCase names used in JSON config files
    (sourceDir, fillMode, customMargin, ...) or the snake_case field names.

    Raises:
        ConfigurationError: If the file is missing, is not a JSON object, or
            holds values that fail validation.
    """
    path = os.path.expanduser(config_path)
    if not os.path.isfile(path):
        raise ConfigurationError(f"Config file does not exist: {config_path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a JSON object")

    _validate_partial(data, source=config_path)
    return data


def _validate_partial(overrides: Dict[str, Any], source: str) -> Dict[str, Any]:
    """Validate a partial override and return only the fields it actually sets."""
    try:
        partial = Settings.model_validate(overrides)
    except ValidationError as e:
        messages = [
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ConfigurationError(f"Invalid configuration in {source}", errors=messages) from e
    return {name: getattr(partial, name) for name in partial.model_fields_set}


def merge_settings(base: Settings, *overrides: Optional[Dict[str, Any]]) -> Settings:
    """
    Layer override dictionaries on top of a base Settings.

    Later overrides win. Only keys present in an override replace base
    values; nested objects such as customMargin are replaced as a whole.
    """
    merged = base
    for index, override in enumerate(overrides):
        if not override:
            continue
        update = _validate_partial(override, source=f"override #{index + 1}")
        merged = merged.model_copy(update=update)
    return merged


def validate_settings(settings: Settings) -> Settings:
    """
    Checks the directories of a merged Settings.

    Expands '~' in both paths and creates the output directory when it does
    not exist yet. All problems are collected before failing.

    Returns:
        Settings with expanded directory paths.

    Raises:
        ConfigurationError: With every problem found in ``errors``.
    """
    errors: List[str] = []
    source_dir = os.path.expanduser(settings.source_dir) if settings.source_dir else ""
    output_dir = os.path.expanduser(settings.output_dir) if settings.output_dir else ""

    if not source_dir:
        errors.append(f"A source image directory is required (--source-dir or {ENV_SOURCE_DIR})")
    elif not os.path.exists(source_dir):
        errors.append(f"Source directory does not exist: {source_dir}")
    elif not os.path.isdir(source_dir):
        errors.append(f"Source path is not a directory: {source_dir}")

    if not output_dir:
        errors.append(f"An output directory is required (--output-dir or {ENV_OUTPUT_DIR})")
    elif not os.path.isdir(output_dir):
        try:
            os.makedirs(output_dir, exist_ok=True)
            logger.info(f"Created output directory: {output_dir}")
        except OSError as e:
            errors.append(f"Cannot create output directory: {output_dir} - {e}")

    if errors:
        raise ConfigurationError("Configuration errors found", errors=errors)

    return settings.model_copy(update={"source_dir": source_dir, "output_dir": output_dir})
