"""Build planning: decide, asset by asset, whether to rebuild or reuse."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath

from .core.types import AssetDefinition, BuildState, ContentFingerprint, Manifest
from .graph import DependencyGraph
from .paths import versioned_output_path

logger = logging.getLogger(__name__)


class StepAction(str, Enum):
    REUSE = "reuse"
    REBUILD = "rebuild"


@dataclass(frozen=True)
class PlannedStep:
    """One asset's entry in the build plan.

    Attributes:
        asset: Asset definition from the manifest
        fingerprint: Freshly computed fingerprint
        output_path: Versioned output path, relative to the output directory
        action: Whether the existing output can be reused
    """

    asset: AssetDefinition
    fingerprint: ContentFingerprint
    output_path: PurePosixPath
    action: StepAction

    @property
    def name(self) -> str:
        return self.asset.name

    @property
    def input_names(self) -> tuple[str, ...]:
        return self.asset.input_names


def plan(
    manifest: Manifest,
    graph: DependencyGraph,
    fingerprints: Mapping[str, ContentFingerprint],
    previous_state: BuildState,
    output_directory: Path,
    prefix_length: int,
) -> list[PlannedStep]:
    """Produce build steps in dependency order.

    An asset is reused only when the previous state recorded the same
    fingerprint at the same versioned path and that file is still present.
    Upstream rebuilds need no special handling here: they already changed
    the downstream fingerprints. Assets without a fingerprint (their source
    failed during lenient fingerprinting) get no step.

    Args:
        manifest: Loaded manifest
        graph: Dependency graph built from the manifest
        fingerprints: Fingerprint of every asset that can be built
        previous_state: State recorded by the previous run
        output_directory: Directory versioned outputs live in
        prefix_length: Number of fingerprint hex chars in output file names

    Returns:
        One PlannedStep per fingerprinted asset; inputs always precede
        their dependents

    Raises:
        AssetPathError: If an asset's output path escapes the output directory
    """
    steps: list[PlannedStep] = []
    for name in graph.topological_order():
        if name not in fingerprints:
            continue
        asset = manifest.assets[name]
        current = fingerprints[name]
        output_path = versioned_output_path(asset, current, prefix_length)

        previous = previous_state.get(name)
        reusable = (
            previous is not None
            and previous.fingerprint == current
            and previous.output_path == output_path
            and (output_directory / previous.output_path).is_file()
        )
        action = StepAction.REUSE if reusable else StepAction.REBUILD
        steps.append(PlannedStep(asset, current, output_path, action))
        logger.debug("Planned %s: %s -> %s", name, action.value, output_path)

    return steps
