"""Core model and document handling.

This package contains the type definitions, error hierarchy, schema
validation and manifest/state (de)serialization used by every stage of
a pack run.
"""

from .errors import (
    AssetPathError,
    CyclicDependency,
    FilterError,
    FilterExecutionFailed,
    GraphError,
    ManifestFormatError,
    OptionError,
    OptionTypeMismatch,
    OutputWriteFailed,
    PackError,
    SourceFileMissing,
    SourceReadFailed,
    StateFileError,
    UnknownAssetReference,
    UnknownFilter,
    UnknownOption,
    UpstreamFailed,
)
from .manifest import load_manifest, parse_manifest
from .state import load_build_state, save_build_state
from .types import (
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
    OptionValue,
    StringOption,
    StringVecOption,
)
from .validator import validate_build_state_with_error_details, validate_manifest_with_error_details

__all__ = [
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
    "OptionValue",
    "StringOption",
    "StringVecOption",
    "load_manifest",
    "parse_manifest",
    "load_build_state",
    "save_build_state",
    "validate_manifest_with_error_details",
    "validate_build_state_with_error_details",
    "AssetPathError",
    "CyclicDependency",
    "FilterError",
    "FilterExecutionFailed",
    "GraphError",
    "ManifestFormatError",
    "OptionError",
    "OptionTypeMismatch",
    "OutputWriteFailed",
    "PackError",
    "SourceFileMissing",
    "SourceReadFailed",
    "StateFileError",
    "UnknownAssetReference",
    "UnknownFilter",
    "UnknownOption",
    "UpstreamFailed",
]
