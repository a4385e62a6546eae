"""Pack orchestration.

This module provides the main interface for packing assets. A run moves
through fixed stages:

    LOADED -> VALIDATED -> PLANNED -> EXECUTING -> COMPLETED

and ends in FAILED if any stage raises. A failed run returns no state;
files already written stay in the output directory, where they are
harmless because their names are content-addressed.
"""

import logging
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .config import PackConfig
from .core.errors import AssetPathError, OutputWriteFailed, PackError
from .core.manifest import load_manifest
from .core.state import load_build_state, save_build_state
from .core.types import BuildState, Manifest
from .executor import Executor, validate_filters
from .filters.base import AssetFilter
from .graph import DependencyGraph, build_graph
from .hashing import fingerprint_all
from .paths import validate_path_safety
from .planner import PlannedStep, plan
from .registry import FilterRegistry

logger = logging.getLogger(__name__)


class PackStage(str, Enum):
    LOADED = "loaded"
    VALIDATED = "validated"
    PLANNED = "planned"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PackResult:
    """Outcome of a completed pack run.

    Attributes:
        new_state: State to persist and pass to the next run
        public_url_map: Public asset name -> versioned output path
        rebuilt: Assets regenerated in this run
        reused: Assets whose previous output was kept
        failures: Per-asset errors (lenient mode only)
    """

    new_state: BuildState
    public_url_map: dict[str, str]
    rebuilt: list[str] = field(default_factory=list)
    reused: list[str] = field(default_factory=list)
    failures: dict[str, PackError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class AssetPacker:
    """Runs one pack invocation over a manifest.

    An AssetPacker is single-use: create one per run.

    Example:
        >>> packer = AssetPacker(manifest, default_registry(), PackConfig())
        >>> result = packer.pack(previous_state)
        >>> result.public_url_map['site.css']
        'css/site.css-3f2a9c0d41b7e8aa.css'
    """

    def __init__(
        self,
        manifest: Manifest,
        registry: FilterRegistry,
        config: PackConfig | None = None,
    ):
        self.manifest = manifest
        self.registry = registry
        self.config = config or PackConfig()
        self.stage = PackStage.LOADED
        self.graph: DependencyGraph | None = None
        self.steps: list[PlannedStep] | None = None
        # Assets that failed while planning (lenient mode only)
        self.planning_failures: dict[str, PackError] = {}

    def _advance(self, stage: PackStage) -> None:
        logger.info("Pack stage: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def pack(self, previous_state: BuildState) -> PackResult:
        """Validate, plan and execute the manifest.

        Args:
            previous_state: State returned by the previous run (not modified)

        Returns:
            PackResult with the new state and public URL map

        Raises:
            PackError: Any validation, hashing or execution failure
            RuntimeError: If this packer has already been used
        """
        if self.stage is not PackStage.LOADED:
            raise RuntimeError(f"AssetPacker already used (stage: {self.stage.value})")

        try:
            executor = Executor(self.registry, self.config, previous_state)
            self.validate(executor.filters)
            self.plan(previous_state)

            self._advance(PackStage.EXECUTING)
            report = executor.execute(self.steps, self.planning_failures, validated=True)

            public_url_map = {
                name: report.state.get(name).output_path.as_posix()
                for name in self.manifest.public_assets
                if name in report.state
            }
            if self.config.public_directory is not None:
                self.publish(report.state)
        except Exception:
            self._advance(PackStage.FAILED)
            raise

        self._advance(PackStage.COMPLETED)
        logger.info(
            "Packed %d assets: %d rebuilt, %d reused, %d failed",
            len(self.steps), len(report.rebuilt), len(report.reused), len(report.failures),
        )
        return PackResult(
            new_state=report.state,
            public_url_map=public_url_map,
            rebuilt=report.rebuilt,
            reused=report.reused,
            failures=report.failures,
        )

    def validate(self, filters: Mapping[str, AssetFilter] | None = None) -> DependencyGraph:
        """LOADED -> VALIDATED: check references, cycles, filters and options.

        Runs before any file is read, so structural errors never leave
        partial output behind.

        Args:
            filters: Filters to check against; defaults to a snapshot of
                the registry
        """
        self.graph = build_graph(self.manifest)
        validate_filters(
            self.manifest.assets.values(),
            filters if filters is not None else self.registry.snapshot(),
            self.config.unknown_options,
        )
        self._advance(PackStage.VALIDATED)
        return self.graph

    def plan(self, previous_state: BuildState) -> list[PlannedStep]:
        """VALIDATED -> PLANNED: fingerprint every asset and decide what to rebuild.

        In lenient mode unreadable sources are collected in
        planning_failures and the rest of the manifest is still planned.
        """
        self.planning_failures = {}
        fingerprints = fingerprint_all(
            self.manifest,
            self.graph,
            self.config.source_directory,
            self.planning_failures if self.config.lenient else None,
        )
        self.steps = plan(
            self.manifest,
            self.graph,
            fingerprints,
            previous_state,
            self.config.output_directory,
            self.config.fingerprint_prefix_length,
        )
        self._advance(PackStage.PLANNED)
        return self.steps

    def publish(self, state: BuildState) -> None:
        """Copy public assets into the public directory.

        Files already present are left alone: a versioned path always
        holds the same content.
        """
        public_directory = self.config.public_directory
        for name in self.manifest.public_assets:
            entry = state.get(name)
            if entry is None:
                continue

            source_file = self.config.output_directory / entry.output_path
            target_file = public_directory / entry.output_path
            try:
                validate_path_safety(target_file, public_directory)
            except ValueError as e:
                raise AssetPathError(name, entry.output_path) from e

            if target_file.is_file():
                continue
            logger.debug("Copying %s to %s", source_file, target_file)
            try:
                target_file.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source_file, target_file)
            except OSError as e:
                raise OutputWriteFailed(name, target_file, e) from e


def pack(
    manifest: Manifest,
    previous_state: BuildState,
    registry: FilterRegistry,
    config: PackConfig | None = None,
) -> PackResult:
    """Pack a manifest; see AssetPacker.pack()."""
    return AssetPacker(manifest, registry, config).pack(previous_state)


def pack_files(
    manifest_path: Path,
    state_path: Path,
    registry: FilterRegistry,
    config: PackConfig | None = None,
) -> PackResult:
    """Process a manifest file and a build state file.

    The state file is only replaced when the run completes (in lenient
    mode that includes runs with per-asset failures).
    """
    manifest = load_manifest(manifest_path)
    previous_state = load_build_state(state_path)
    result = pack(manifest, previous_state, registry, config)
    save_build_state(result.new_state, state_path)
    return result
