"""Exception hierarchy for pack runs.

Every error raised by the packer derives from PackError and carries the
name of the offending asset (when there is one) so that the message is
actionable on its own.
"""

from pathlib import PurePath
from typing import Sequence


class PackError(Exception):
    """Base class for all pack failures."""

    def __init__(self, message: str, asset: str | None = None):
        super().__init__(message)
        self.message = message
        self.asset = asset

    def __str__(self) -> str:
        if self.asset is None:
            return self.message
        return f"asset '{self.asset}': {self.message}"


class ManifestFormatError(PackError):
    """Manifest document does not match the expected structure."""


class StateFileError(PackError):
    """Build state document could not be read or is malformed."""


class GraphError(PackError):
    """Structural problem in the asset dependency graph."""


class UnknownAssetReference(GraphError):
    def __init__(self, name: str, referenced_by: str | None = None):
        where = f"referenced by '{referenced_by}'" if referenced_by else "listed in public_assets"
        super().__init__(f"unknown asset '{name}' ({where})", asset=referenced_by)
        self.name = name
        self.referenced_by = referenced_by


class CyclicDependency(GraphError):
    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__("dependency cycle: " + " -> ".join(self.cycle), asset=self.cycle[0])


class SourceFileMissing(PackError):
    def __init__(self, asset: str, path: PurePath):
        super().__init__(f"source file not found: {path}", asset=asset)
        self.path = path


class SourceReadFailed(PackError):
    def __init__(self, asset: str, path: PurePath, cause: BaseException):
        super().__init__(f"could not read {path}: {cause}", asset=asset)
        self.path = path
        self.cause = cause


class AssetPathError(PackError):
    """Output path is absolute or escapes its base directory."""

    def __init__(self, asset: str, path: PurePath):
        super().__init__(f"output path escapes the output directory: {path}", asset=asset)
        self.path = path


class UnknownFilter(PackError):
    def __init__(self, filter_name: str, asset: str | None = None):
        super().__init__(f"unknown filter '{filter_name}'", asset=asset)
        self.filter_name = filter_name


class OptionError(PackError):
    """Filter options failed validation.

    Raised by AssetFilter.validate(); the packer fills in ``asset`` before
    re-raising.
    """


class UnknownOption(OptionError):
    def __init__(self, key: str, filter_name: str | None = None, asset: str | None = None):
        owner = f" for filter '{filter_name}'" if filter_name else ""
        super().__init__(f"unknown option '{key}'{owner}", asset=asset)
        self.key = key
        self.filter_name = filter_name


class OptionTypeMismatch(OptionError):
    def __init__(self, key: str, expected_kind, actual_kind, asset: str | None = None):
        super().__init__(
            f"option '{key}' expects {expected_kind.value}, got {actual_kind.value}",
            asset=asset,
        )
        self.key = key
        self.expected_kind = expected_kind
        self.actual_kind = actual_kind


class FilterError(Exception):
    """Raised by filter implementations when processing fails."""


class FilterExecutionFailed(PackError):
    def __init__(self, asset: str, filter_name: str, cause: BaseException):
        super().__init__(f"filter '{filter_name}' failed: {cause}", asset=asset)
        self.filter_name = filter_name
        self.cause = cause


class OutputWriteFailed(PackError):
    def __init__(self, asset: str, path: PurePath, cause: BaseException):
        super().__init__(f"could not write {path}: {cause}", asset=asset)
        self.path = path
        self.cause = cause


class UpstreamFailed(PackError):
    """Asset skipped because one of its inputs failed (lenient mode only)."""

    def __init__(self, asset: str, failed_input: str):
        super().__init__(f"input '{failed_input}' failed", asset=asset)
        self.failed_input = failed_input
