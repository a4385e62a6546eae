"""Step execution.

Runs a build plan on a bounded thread pool. A step is dispatched only
once all of its inputs have completed, so independent branches of the
dependency graph build in parallel while every filter sees finished input
files. Only the thread calling execute() touches the state being built;
workers just produce files.
"""

import heapq
import logging
import os
import shutil
import uuid
from collections import defaultdict, deque
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path

from .config import PackConfig, UnknownOptionPolicy
from .core.errors import (
    FilterExecutionFailed,
    FilterError,
    OptionError,
    OutputWriteFailed,
    PackError,
    SourceFileMissing,
    SourceReadFailed,
    UnknownAssetReference,
    UnknownFilter,
    UpstreamFailed,
)
from .core.types import (
    AssetDefinition,
    BuildState,
    BuildStateEntry,
    FileSource,
    FilteredSource,
)
from .filters.base import AssetFilter
from .planner import PlannedStep, StepAction
from .registry import FilterRegistry

logger = logging.getLogger(__name__)


def validate_filters(
    assets: Iterable[AssetDefinition],
    filters: Mapping[str, AssetFilter],
    unknown_options: UnknownOptionPolicy,
) -> None:
    """Resolve every filter and validate every filtered asset's options.

    Raises:
        UnknownFilter: If an asset names an unregistered filter
        OptionError: If an asset's options are rejected by its filter
    """
    for asset in assets:
        source = asset.source
        if not isinstance(source, FilteredSource):
            continue
        asset_filter = filters.get(source.filter_name)
        if asset_filter is None:
            raise UnknownFilter(source.filter_name, asset=asset.name)
        try:
            asset_filter.validate(source.options, unknown_options)
        except OptionError as e:
            e.asset = asset.name
            raise


@dataclass
class ExecutionReport:
    """Outcome of executing a plan.

    Attributes:
        state: New build state (entries for every completed asset)
        rebuilt: Assets whose output was (re)generated, in completion order
        reused: Assets whose previous output was kept
        failures: Per-asset errors; only populated in lenient mode
    """

    state: BuildState
    rebuilt: list[str] = field(default_factory=list)
    reused: list[str] = field(default_factory=list)
    failures: dict[str, PackError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class Executor:
    """Executes planned steps against the output directory.

    Example:
        >>> executor = Executor(registry, config)
        >>> report = executor.execute(steps)
        >>> report.state.get('site.css').output_path
        PurePosixPath('css/site.css-3f2a9c0d41b7e8aa.css')
    """

    def __init__(
        self,
        registry: FilterRegistry,
        config: PackConfig,
        previous_state: BuildState | None = None,
    ):
        """Initialize the executor.

        Args:
            registry: Filter registry; a snapshot is taken now, so later
                registrations do not affect this executor
            config: Pack configuration
            previous_state: Used in lenient mode to keep the last good
                output of assets that fail
        """
        self.filters = registry.snapshot()
        self.config = config
        self.previous_state = previous_state or BuildState.empty()

    def execute(
        self,
        steps: Sequence[PlannedStep],
        failures: Mapping[str, PackError] | None = None,
        validated: bool = False,
    ) -> ExecutionReport:
        """Execute a plan produced by planner.plan().

        Args:
            steps: Planned steps in dependency order
            failures: Assets that already failed before planning (lenient
                fingerprinting); reported and carried like step failures
            validated: Skip the filter and option check because the caller
                already ran validate_filters() against self.filters

        Returns:
            ExecutionReport with the new build state

        Raises:
            UnknownAssetReference: Before any work, if a step's input has
                no step of its own
            UnknownFilter: Before any work, if a filter is not registered
            OptionError: Before any work, if options fail validation
            PackError: The first step failure in plan order (strict mode)
        """
        index = {step.name: i for i, step in enumerate(steps)}
        for step in steps:
            for input_name in step.input_names:
                if input_name not in index:
                    raise UnknownAssetReference(input_name, referenced_by=step.name)

        if not validated:
            validate_filters(
                (step.asset for step in steps), self.filters, self.config.unknown_options
            )

        waiting = {step.name: len(set(step.input_names)) for step in steps}
        dependents: dict[str, list[str]] = defaultdict(list)
        for step in steps:
            for input_name in dict.fromkeys(step.input_names):
                dependents[input_name].append(step.name)

        ready = [index[name] for name, count in waiting.items() if count == 0]
        heapq.heapify(ready)

        entries: dict[str, BuildStateEntry] = {}
        report = ExecutionReport(state=BuildState.empty(), failures=dict(failures or {}))
        pending: dict[Future, PlannedStep] = {}
        stopped = False

        def complete(step: PlannedStep) -> None:
            entries[step.name] = BuildStateEntry(step.fingerprint, step.output_path)
            for dependent in dependents[step.name]:
                waiting[dependent] -= 1
                if waiting[dependent] == 0:
                    heapq.heappush(ready, index[dependent])

        with ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="asset-packer"
        ) as pool:
            while True:
                # Submit no more than the pool can start right away, so a
                # failure stops everything that has not begun yet.
                while ready and not stopped and len(pending) < self.config.max_workers:
                    step = steps[heapq.heappop(ready)]
                    if step.action is StepAction.REUSE:
                        if self._output_file(step).is_file():
                            logger.debug("Reusing %s", step.output_path)
                            report.reused.append(step.name)
                            complete(step)
                            continue
                        logger.warning(
                            "Output of '%s' disappeared (%s), rebuilding", step.name, step.output_path
                        )

                    input_paths = [
                        self.config.output_directory / entries[name].output_path
                        for name in step.input_names
                    ]
                    pending[pool.submit(self._build, step, input_paths)] = step

                if not pending:
                    break

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in sorted(done, key=lambda f: index[pending[f].name]):
                    step = pending.pop(future)
                    try:
                        future.result()
                    except PackError as e:
                        self._record_failure(step, e, report, dependents)
                        if not self.config.lenient:
                            stopped = True
                        continue
                    report.rebuilt.append(step.name)
                    complete(step)

        if report.failures and not self.config.lenient:
            first = min(report.failures, key=lambda name: index.get(name, -1))
            raise report.failures[first]

        unresolved = [
            step.name for step in steps
            if step.name not in entries and step.name not in report.failures
        ]
        if unresolved:
            raise RuntimeError(f"Steps never became ready: {', '.join(unresolved)}")

        for name in report.failures:
            previous = self.previous_state.get(name)
            if previous is not None and (self.config.output_directory / previous.output_path).is_file():
                entries[name] = previous

        # Plan order regardless of completion order; assets that failed
        # before planning come last
        order = [step.name for step in steps] + [name for name in report.failures if name not in index]
        report.state = BuildState({name: entries[name] for name in order if name in entries})
        return report

    def _record_failure(
        self,
        step: PlannedStep,
        error: PackError,
        report: ExecutionReport,
        dependents: Mapping[str, list[str]],
    ) -> None:
        logger.error("%s", error)
        report.failures[step.name] = error
        if not self.config.lenient:
            return

        queue = deque(dependents.get(step.name, ()))
        while queue:
            name = queue.popleft()
            if name in report.failures:
                continue
            report.failures[name] = UpstreamFailed(name, step.name)
            logger.warning("Skipping '%s': input '%s' failed", name, step.name)
            queue.extend(dependents.get(name, ()))

    def _output_file(self, step: PlannedStep) -> Path:
        return self.config.output_directory / step.output_path

    def _build(self, step: PlannedStep, input_paths: list[Path]) -> None:
        """Produce one step's output file. Runs on a worker thread."""
        output_file = self._output_file(step)
        # Write next to the target and rename, so a versioned path only
        # ever holds complete content.
        partial_file = output_file.with_name(
            f".{output_file.stem}.partial-{uuid.uuid4().hex[:8]}{output_file.suffix}"
        )
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputWriteFailed(step.name, output_file, e) from e

        try:
            source = step.asset.source
            if isinstance(source, FileSource):
                self._copy_source(step, source, partial_file)
            else:
                self._run_filter(step, source, input_paths, partial_file)

            try:
                os.replace(partial_file, output_file)
            except OSError as e:
                raise OutputWriteFailed(step.name, output_file, e) from e
        finally:
            partial_file.unlink(missing_ok=True)

        logger.debug("Built %s", step.output_path)

    def _copy_source(self, step: PlannedStep, source: FileSource, target: Path) -> None:
        source_file = self.config.source_directory / source.path
        logger.debug("Copying %s to %s", source_file, step.output_path)
        try:
            src = source_file.open("rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise SourceFileMissing(step.name, source_file) from e
        except OSError as e:
            raise SourceReadFailed(step.name, source_file, e) from e

        with src:
            try:
                with target.open("wb") as dst:
                    shutil.copyfileobj(src, dst)
            except OSError as e:
                raise OutputWriteFailed(step.name, self._output_file(step), e) from e

    def _run_filter(
        self,
        step: PlannedStep,
        source: FilteredSource,
        input_paths: list[Path],
        target: Path,
    ) -> None:
        # Options were validated once per asset before scheduling
        asset_filter = self.filters[source.filter_name]
        logger.debug(
            "Processing %s to %s by filter %s",
            [str(p) for p in input_paths], step.output_path, source.filter_name,
        )

        try:
            asset_filter.apply(input_paths, target, source.options)
        except Exception as e:
            # FilterError or anything else a third-party filter raises
            raise FilterExecutionFailed(step.name, source.filter_name, e) from e

        if not target.is_file():
            raise FilterExecutionFailed(
                step.name, source.filter_name, FilterError("filter did not write an output file")
            )
