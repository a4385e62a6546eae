"""Content fingerprints.

A file asset's fingerprint is the SHA-256 of its bytes. A filtered asset's
fingerprint is the SHA-256 of its filter name, its options in canonical
form and the fingerprints of its inputs, so any upstream change reaches
every downstream asset without re-reading upstream files.
"""

import hashlib
import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from .core.errors import PackError, SourceFileMissing, SourceReadFailed, UpstreamFailed
from .core.types import (
    AssetDefinition,
    ContentFingerprint,
    FileSource,
    Manifest,
    OptionValue,
)
from .graph import DependencyGraph

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def canonical_options(options: Mapping[str, OptionValue]) -> str:
    """Serialize options with sorted keys and no insignificant whitespace."""
    return json.dumps(
        {key: value.to_json() for key, value in options.items()},
        sort_keys=True,
        ensure_ascii=True,
        separators=(",", ":"),
    )


def hash_file(path: Path) -> ContentFingerprint:
    h = hashlib.sha256()
    with path.open("rb") as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                break
            h.update(chunk)
    return ContentFingerprint(h.digest())


def _update_field(h, data: bytes) -> None:
    # Length prefix keeps ("ab", "c") and ("a", "bc") apart
    h.update(len(data).to_bytes(8, "big"))
    h.update(data)


def fingerprint(
    asset: AssetDefinition,
    input_fingerprints: Sequence[ContentFingerprint],
    source_directory: Path,
) -> ContentFingerprint:
    """Compute the fingerprint of one asset.

    Args:
        asset: Asset definition from the manifest
        input_fingerprints: Fingerprints of the asset's inputs, in input order
        source_directory: Directory that file sources are relative to

    Returns:
        Deterministic fingerprint for the asset

    Raises:
        SourceFileMissing: If a file source does not exist
        SourceReadFailed: If a file source exists but cannot be read
    """
    source = asset.source
    if isinstance(source, FileSource):
        source_path = source_directory / source.path
        try:
            return hash_file(source_path)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise SourceFileMissing(asset.name, source_path) from e
        except OSError as e:
            raise SourceReadFailed(asset.name, source_path, e) from e

    h = hashlib.sha256()
    _update_field(h, b"filtered")
    _update_field(h, source.filter_name.encode("utf-8"))
    _update_field(h, canonical_options(source.options).encode("utf-8"))
    _update_field(h, len(input_fingerprints).to_bytes(8, "big"))
    for input_fingerprint in input_fingerprints:
        h.update(input_fingerprint.digest)
    return ContentFingerprint(h.digest())


def fingerprint_all(
    manifest: Manifest,
    graph: DependencyGraph,
    source_directory: Path,
    failures: dict[str, PackError] | None = None,
) -> dict[str, ContentFingerprint]:
    """Fingerprint every asset of the manifest in dependency order.

    Args:
        manifest: Loaded manifest
        graph: Dependency graph built from the manifest
        source_directory: Directory that file sources are relative to
        failures: If given, unreadable sources are recorded here instead
            of raised, and every asset downstream of one is recorded as
            UpstreamFailed. Failed assets get no fingerprint.

    Raises:
        SourceFileMissing: If a file source does not exist and failures is None
        SourceReadFailed: If a file source cannot be read and failures is None
    """
    fingerprints: dict[str, ContentFingerprint] = {}
    for name in graph.topological_order():
        inputs = graph.inputs_of(name)
        failed_inputs = [input_name for input_name in inputs if input_name not in fingerprints]
        if failed_inputs:
            # Only reachable when failures is collecting
            error = failures[failed_inputs[0]]
            origin = error.failed_input if isinstance(error, UpstreamFailed) else failed_inputs[0]
            failures[name] = UpstreamFailed(name, origin)
            logger.warning("Skipping '%s': input '%s' failed", name, origin)
            continue

        try:
            fingerprints[name] = fingerprint(
                manifest.assets[name],
                [fingerprints[input_name] for input_name in inputs],
                source_directory,
            )
        except (SourceFileMissing, SourceReadFailed) as e:
            if failures is None:
                raise
            logger.error("%s", e)
            failures[name] = e
    return fingerprints
