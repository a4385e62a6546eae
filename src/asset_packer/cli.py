"""Command-line interface for the asset packer.

This module provides the CLI entry point for packing a JSON asset manifest
into versioned output files.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import PackConfig, UnknownOptionPolicy
from .core.errors import PackError
from .logging_utils import configure_logging
from .packer import PackResult, pack_files
from .registry import FilterRegistry, default_registry


def build_config(args: argparse.Namespace) -> PackConfig:
    """Translate parsed arguments into a PackConfig.

    Raises:
        ValueError: If an argument value is out of range
    """
    return PackConfig(
        source_directory=Path(args.source_dir),
        output_directory=Path(args.output_dir),
        public_directory=Path(args.public_dir) if args.public_dir else None,
        max_workers=args.workers,
        lenient=args.lenient,
        unknown_options=(
            UnknownOptionPolicy.IGNORE if args.ignore_unknown_options else UnknownOptionPolicy.FAIL
        ),
        fingerprint_prefix_length=args.prefix_length,
    )


def report_result(result: PackResult) -> None:
    print(
        f"Rebuilt {len(result.rebuilt)} assets, reused {len(result.reused)}",
        file=sys.stderr,
    )
    for error in result.failures.values():
        print(f"Error: {error}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asset-packer",
        description="Pack web assets into content-versioned files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic usage
  asset-packer --manifest assets.json --source-dir assets --output-dir build/assets

  # Copy public assets to the web root and save the URL map
  asset-packer --manifest assets.json --public-dir public > asset-urls.json

  # Keep going when single assets fail
  asset-packer --manifest assets.json --lenient
        """,
    )

    parser.add_argument("--manifest", help="Asset manifest (JSON)")
    parser.add_argument(
        "--state",
        default=".asset-state.json",
        help="Build state file read before and written after the run (default: %(default)s)",
    )
    parser.add_argument(
        "--source-dir", default=".", help="Directory file sources are relative to (default: %(default)s)"
    )
    parser.add_argument(
        "--output-dir",
        default="build/assets",
        help="Directory for versioned output files (default: %(default)s)",
    )
    parser.add_argument("--public-dir", help="Copy public assets into this directory")
    parser.add_argument(
        "--workers", type=int, default=4, help="Maximum parallel filter runs (default: %(default)s)"
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Report failing assets instead of failing the whole run",
    )
    parser.add_argument(
        "--ignore-unknown-options",
        action="store_true",
        help="Ignore filter options the filter does not understand",
    )
    parser.add_argument(
        "--prefix-length",
        type=int,
        default=16,
        help="Fingerprint characters in output file names (default: %(default)s)",
    )
    parser.add_argument("--list-filters", action="store_true", help="List available filters and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None, registry: FilterRegistry | None = None) -> None:
    """Main entry point for the asset packer."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)
    registry = registry or default_registry()

    if args.list_filters:
        for name in registry.list_filters():
            print(name)
        return

    if not args.manifest:
        parser.error("--manifest is required")

    manifest_path = Path(args.manifest)
    if not manifest_path.is_file():
        print(f"Error: Manifest does not exist: {manifest_path}", file=sys.stderr)
        sys.exit(1)

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Packing assets from {manifest_path}...", file=sys.stderr)
    try:
        result = pack_files(manifest_path, Path(args.state), registry, config)
    except (PackError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    report_result(result)

    # Output JSON to stdout
    json.dump(result.public_url_map, sys.stdout, indent=2, sort_keys=True)
    print()  # Add newline at end

    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
