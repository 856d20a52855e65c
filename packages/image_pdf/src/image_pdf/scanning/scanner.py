"""
Finds the images to convert and groups them by directory.
"""

import locale
import os
import re
import unicodedata
from typing import Dict, Iterable, List, Tuple

from ..config import get_logger
from ..models import ROOT_GROUP_NAME, ImageDescriptor, ImageGroup

logger = get_logger(__name__)

_FIRST_NUMBER = re.compile(r"\d+")
_DIGIT_RUNS = re.compile(r"(\d+)")


def _fold(text: str) -> str:
    """Casefolds and strips accents, so "é" ties with "e" before collation."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def image_sort_key(file_name: str) -> Tuple:
    """
    Sort key for page order.

    Primary key is the first integer embedded in the name (0 when there is
    none), so "2.jpg" sorts before "10.jpg". Ties are broken by a
    digit-aware comparison of the whole name in which text compares first
    without case or accents, then by the active LC_COLLATE locale, then by
    the raw name to keep the order total.
    """
    match = _FIRST_NUMBER.search(file_name)
    first_number = int(match.group()) if match else 0

    # re.split with a capture group alternates text, digits, text, ...
    # so every position holds the same type across names
    chunks = _DIGIT_RUNS.split(file_name)
    natural = tuple(
        int(chunk) if i % 2 else (_fold(chunk), locale.strxfrm(chunk.casefold()))
        for i, chunk in enumerate(chunks)
    )
    return first_number, natural, file_name


def sort_image_names(names: Iterable[str]) -> List[str]:
    return sorted(names, key=image_sort_key)


def get_image_files(directory: str, supported_formats: Iterable[str]) -> List[ImageDescriptor]:
    """
    Lists the supported images directly inside a directory, in page order.

    Args:
        directory: Directory to list (not recursive).
        supported_formats: Lowercase extensions including the dot.

    Returns:
        Ordered descriptors; an empty list if the directory cannot be read.
    """
    extensions = {ext.lower() for ext in supported_formats}
    try:
        entries = os.listdir(directory)
    except OSError as e:
        logger.warning(f"Failed to read directory {directory}: {e}")
        return []

    images = []
    for name in sort_image_names(entries):
        full_path = os.path.join(directory, name)
        if os.path.splitext(name)[1].lower() not in extensions or not os.path.isfile(full_path):
            continue
        try:
            size = os.path.getsize(full_path)
        except OSError as e:
            logger.warning(f"Skipping unreadable file {full_path}: {e}")
            continue
        images.append(ImageDescriptor.from_path(name, full_path, size))
    return images


def scan_directories(root_dir: str, supported_formats: Iterable[str]) -> Dict[str, ImageGroup]:
    """
    Builds one ImageGroup per immediate sub-directory that holds images.

    Images lying directly in root_dir form an extra group named "_root",
    added last. Directories without supported images are left out.
    """
    supported_formats = list(supported_formats)
    groups: Dict[str, ImageGroup] = {}

    try:
        entries = sorted(os.listdir(root_dir))
    except OSError as e:
        logger.error(f"Failed to scan {root_dir}: {e}")
        return groups

    for entry in entries:
        full_path = os.path.join(root_dir, entry)
        if not os.path.isdir(full_path):
            continue
        images = get_image_files(full_path, supported_formats)
        if images:
            groups[entry] = ImageGroup(name=entry, path=full_path, images=images)

    root_images = get_image_files(root_dir, supported_formats)
    if root_images:
        groups[ROOT_GROUP_NAME] = ImageGroup(name=ROOT_GROUP_NAME, path=root_dir, images=root_images)

    return groups
