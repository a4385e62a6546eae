"""Asset Packer.

This package packs declaratively defined web assets (stylesheets, scripts,
images) into content-versioned output files, regenerating only what
changed since the previous run.
"""

# Core library interface
from .config import PackConfig, UnknownOptionPolicy
from .packer import AssetPacker, PackResult, PackStage, pack, pack_files
from .registry import FilterRegistry, default_registry
from .filters.base import AssetFilter

# Building blocks
from .executor import ExecutionReport, Executor
from .graph import DependencyGraph, build_graph
from .hashing import fingerprint, fingerprint_all
from .planner import PlannedStep, StepAction, plan

# Model, documents and errors
from .core import (
    AssetDefinition,
    BoolOption,
    BuildState,
    BuildStateEntry,
    ContentFingerprint,
    FileSource,
    FilteredSource,
    FlagOption,
    Manifest,
    OptionKind,
    StringOption,
    StringVecOption,
    load_build_state,
    load_manifest,
    parse_manifest,
    save_build_state,
)
from .core.errors import (
    CyclicDependency,
    FilterError,
    FilterExecutionFailed,
    OptionError,
    OptionTypeMismatch,
    OutputWriteFailed,
    PackError,
    SourceFileMissing,
    SourceReadFailed,
    UnknownAssetReference,
    UnknownFilter,
    UnknownOption,
    UpstreamFailed,
)

__version__ = "0.1.0"

__all__ = [
    # Primary library interface
    "AssetPacker",
    "PackConfig",
    "PackResult",
    "PackStage",
    "UnknownOptionPolicy",
    "pack",
    "pack_files",
    "FilterRegistry",
    "default_registry",
    "AssetFilter",
    # Building blocks
    "DependencyGraph",
    "build_graph",
    "fingerprint",
    "fingerprint_all",
    "PlannedStep",
    "StepAction",
    "plan",
    "Executor",
    "ExecutionReport",
    # Model and documents
    "AssetDefinition",
    "BoolOption",
    "BuildState",
    "BuildStateEntry",
    "ContentFingerprint",
    "FileSource",
    "FilteredSource",
    "FlagOption",
    "Manifest",
    "OptionKind",
    "StringOption",
    "StringVecOption",
    "load_build_state",
    "load_manifest",
    "parse_manifest",
    "save_build_state",
    # Errors
    "CyclicDependency",
    "FilterError",
    "FilterExecutionFailed",
    "OptionError",
    "OptionTypeMismatch",
    "OutputWriteFailed",
    "PackError",
    "SourceFileMissing",
    "SourceReadFailed",
    "UnknownAssetReference",
    "UnknownFilter",
    "UnknownOption",
    "UpstreamFailed",
]
