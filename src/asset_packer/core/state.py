"""Build state persistence.

The state file records, for every asset of the last run, the fingerprint
and versioned output path that run produced. It is read before a pack run
and replaced after it.
"""

import json
import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Any

from jsonschema import ValidationError

from .errors import StateFileError
from .types import BuildState, BuildStateDocument, BuildStateEntry, ContentFingerprint
from .validator import describe_validation_error, validate_build_state_document

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def state_from_document(document: Any) -> BuildState:
    """Convert a decoded state document into a BuildState.

    Raises:
        StateFileError: If the document doesn't conform to the schema
    """
    try:
        validate_build_state_document(document)
    except ValidationError as e:
        raise StateFileError(describe_validation_error(e)) from e

    return BuildState(
        {
            name: BuildStateEntry(
                fingerprint=ContentFingerprint.from_hex(entry["fingerprint"]),
                output_path=PurePosixPath(entry["output_path"]),
            )
            for name, entry in document["assets"].items()
        }
    )


def state_to_document(state: BuildState) -> BuildStateDocument:
    return {
        "version": STATE_VERSION,
        "assets": {
            name: {
                "fingerprint": entry.fingerprint.hex,
                "output_path": entry.output_path.as_posix(),
            }
            for name, entry in sorted(state.entries.items())
        },
    }


def load_build_state(state_path: Path) -> BuildState:
    """Load the build state left by the previous run.

    A missing file is treated as an empty state (first run).

    Raises:
        StateFileError: If the file exists but cannot be parsed
    """
    if not state_path.exists():
        logger.debug("No build state at %s, starting from an empty state", state_path)
        return BuildState.empty()

    try:
        with state_path.open("r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise StateFileError(f"{state_path}: invalid JSON: {e}") from e
    return state_from_document(document)


def save_build_state(state: BuildState, state_path: Path) -> None:
    """Write the build state, replacing any previous file atomically."""
    state_path.parent.mkdir(parents=True, exist_ok=True)
    data = json.dumps(state_to_document(state), indent=2, sort_keys=True) + "\n"

    fd, tmp_name = tempfile.mkstemp(prefix=f".{state_path.name}.", dir=state_path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_name, state_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("Saved build state with %d entries to %s", len(state), state_path)
