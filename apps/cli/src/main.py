"""
Command-line entry point: convert folders of images into PDF files.

Configuration precedence, lowest to highest: preset, environment variables,
JSON config file, command-line flags.
"""

import argparse
import asyncio
import locale
import os
import sys
from typing import Any, Dict, List, Optional

from image_pdf import __version__
from image_pdf.batch import run_batch
from image_pdf.config import (
    DEFAULT_PRESET,
    ENV_CONFIG_PATH,
    ENV_OUTPUT_DIR,
    ENV_SOURCE_DIR,
    PRESETS,
    Settings,
    get_preset,
    load_config_file,
    load_env,
    load_from_env,
    merge_settings,
    validate_settings,
)
from image_pdf.errors import ConfigurationError

EPILOG = f"""
environment variables:
  {ENV_SOURCE_DIR}    source image directory
  {ENV_OUTPUT_DIR}    output PDF directory
  {ENV_CONFIG_PATH}        config file path

presets:
  music         sheet music scans (no side margins, space top and bottom)
  high-quality  large margins, high resolution, no pre-compression
  compact       smaller files

examples:
  %(prog)s --source-dir ./images --output-dir ./pdfs
  %(prog)s --source-dir ./images --output-dir ./pdfs --preset music
  %(prog)s --config ./my-config.json
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert each folder of images into one PDF, one image per page.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-s", "--source-dir", help="Directory containing the source images.")
    parser.add_argument("-o", "--output-dir", help="Directory where PDF files are written.")
    parser.add_argument("-c", "--config", help="Load settings from a JSON file.")
    parser.add_argument("-p", "--preset", choices=sorted(PRESETS),
                        help=f"Base settings preset (defaults to: {DEFAULT_PRESET}).")
    parser.add_argument("-v", "--version", action="version",
                        version=f"Image to PDF Converter v{__version__}")
    return parser


def cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.source_dir:
        overrides["source_dir"] = args.source_dir
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    return overrides


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Merge preset, environment, config file and flags into validated Settings."""
    load_env()
    base = get_preset(args.preset or DEFAULT_PRESET)
    if args.preset:
        print(f"Using preset: {args.preset}")

    env_overrides = load_from_env()

    file_overrides: Dict[str, Any] = {}
    config_path = args.config or os.getenv(ENV_CONFIG_PATH)
    if config_path:
        file_overrides = load_config_file(config_path)
        print(f"Loaded config file: {config_path}")

    merged = merge_settings(base, env_overrides, file_overrides, cli_overrides(args))
    return validate_settings(merged)


def configure_collation() -> None:
    """Use the user's LC_COLLATE locale for ordering page file names."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        print(f"Warning: could not apply the system collation locale ({e}); "
              "falling back to default name ordering", file=sys.stderr)


def print_settings(settings: Settings) -> None:
    print("\nCurrent settings:")
    print(f"  Source directory: {settings.source_dir}")
    print(f"  Output directory: {settings.output_dir}")
    print(f"  Page size: {settings.page_size}")
    print(f"  Fill mode: {settings.fill_mode.value}")
    print(f"  Pre-compress images: {'yes' if settings.pre_compress_images else 'no'}")
    print(f"  Auto-rotate: {'yes' if settings.auto_rotate else 'no'}\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Runs the converter and returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_collation()

    try:
        settings = resolve_settings(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        for error in e.errors:
            print(f"  {error}", file=sys.stderr)
        print("\nUse --help for usage information.", file=sys.stderr)
        return 1

    print_settings(settings)

    try:
        result = asyncio.run(run_batch(settings))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    print(f"\nConversion finished: {result.success_count}/{result.total_count} folders")
    return 0


if __name__ == "__main__":
    sys.exit(main())
