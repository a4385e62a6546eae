"""Versioned output paths and path safety checks."""

import posixpath
from pathlib import Path, PurePosixPath

from .core.errors import AssetPathError
from .core.types import AssetDefinition, ContentFingerprint


def validate_path_safety(path: Path, base_dir: Path) -> None:
    """Validate that a path stays within the base directory.

    This prevents path traversal attacks.

    Args:
        path: Path to validate
        base_dir: Base directory that path must be within

    Raises:
        ValueError: If path escapes the base directory
    """
    resolved_path = path.resolve()
    resolved_base = base_dir.resolve()

    if not resolved_path.is_relative_to(resolved_base):
        raise ValueError(f"Path {path} escapes base directory {base_dir}")


def versioned_output_path(
    asset: AssetDefinition,
    fingerprint: ContentFingerprint,
    prefix_length: int,
) -> PurePosixPath:
    """Build ``<output_base_path>/<name>-<fingerprint prefix>.<extension>``.

    Raises:
        AssetPathError: If the result is absolute or climbs out of the
            output directory via '..'
    """
    file_name = f"{asset.name}-{fingerprint.prefix(prefix_length)}.{asset.extension}"
    if asset.output_base_path is not None:
        output_path = asset.output_base_path / file_name
    else:
        output_path = PurePosixPath(file_name)

    normalized = posixpath.normpath(output_path.as_posix())
    if output_path.is_absolute() or normalized == ".." or normalized.startswith("../"):
        raise AssetPathError(asset.name, output_path)
    return output_path
