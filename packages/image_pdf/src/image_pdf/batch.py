"""
Runs the conversion over every image group found under the source directory.
"""

import asyncio
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .config import Settings, get_logger
from .errors import ConfigurationError, ImagePdfError
from .models import ImageGroup
from .pdf_assembly.assembler import DocumentAssembler
from .scanning.scanner import scan_directories

logger = get_logger(__name__)


class BatchResult(BaseModel):
    success_count: int = 0
    total_count: int = 0
    outputs: List[str] = Field(default_factory=list)
    failures: Dict[str, str] = Field(default_factory=dict)


def output_filename(display_name: str, today: Optional[datetime] = None) -> str:
    """<group>_<YYYY-MM-DD>.pdf, using the UTC date."""
    today = today or datetime.now(timezone.utc)
    return f"{display_name}_{today.date().isoformat()}.pdf"


async def convert_group(group: ImageGroup, settings: Settings,
                        assembler: Optional[DocumentAssembler] = None) -> str:
    """Builds the PDF for one group inside the configured output directory."""
    assembler = assembler or DocumentAssembler(settings)
    output_path = os.path.join(settings.output_dir, output_filename(group.display_name))
    logger.info(f"Generating: {os.path.basename(output_path)}")
    return await assembler.build_document(group.images, output_path, group.display_name)


async def run_batch(settings: Settings, assembler: Optional[DocumentAssembler] = None) -> BatchResult:
    """
    Converts every image group under settings.source_dir.

    A failing group is logged and counted; it never stops the others.
    Groups run one at a time unless max_parallel_groups is raised, in which
    case at most that many documents are built concurrently, each with its
    own scratch directory and output file.

    Raises:
        ConfigurationError: If the source directory is missing or the output
            directory cannot be created.
    """
    logger.info(f"Source: {settings.source_dir}")
    logger.info(f"Output: {settings.output_dir}")
    logger.info(f"Page size: {settings.page_size}, fill mode: {settings.fill_mode.value}")
    logger.info(f"Supported formats: {', '.join(settings.supported_formats)}")

    if not os.path.isdir(settings.source_dir):
        raise ConfigurationError(f"Source directory does not exist: {settings.source_dir}")
    try:
        os.makedirs(settings.output_dir, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create output directory: {settings.output_dir} - {e}") from e

    groups = scan_directories(settings.source_dir, settings.supported_formats)
    result = BatchResult(total_count=len(groups))
    if not groups:
        logger.warning("No folders containing images were found")
        return result

    logger.info(f"Found {len(groups)} folders with images:")
    for group in groups.values():
        logger.info(f"  {group.display_name}: {group.count} images")

    assembler = assembler or DocumentAssembler(settings)
    semaphore = asyncio.Semaphore(settings.max_parallel_groups)

    async def _convert(group: ImageGroup) -> None:
        async with semaphore:
            try:
                output_path = await convert_group(group, settings, assembler)
            except (ImagePdfError, OSError) as e:
                logger.error(f"Failed to process folder \"{group.name}\": {e}")
                result.failures[group.name] = str(e)
            except Exception as e:
                logger.exception(f"Unexpected error while processing folder \"{group.name}\": {e}")
                result.failures[group.name] = f"{type(e).__name__}: {e}"
            else:
                result.outputs.append(output_path)
                result.success_count += 1

    await asyncio.gather(*(_convert(group) for group in groups.values()))

    logger.info(f"Done: {result.success_count}/{result.total_count} folders converted")
    if result.success_count:
        logger.info(f"PDF files saved to: {settings.output_dir}")
    return result
