"""Type definitions for asset manifests and build state.

The dataclasses here are the in-memory model used by the packer. The
TypedDict classes at the bottom mirror the JSON documents described by
schemas/manifest.schema.json and schemas/build_state.schema.json.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Iterator, Mapping, TypedDict, Union


class OptionKind(str, Enum):
    """Variant tag of an option value, as written in manifests."""

    FLAG = "Flag"
    STRING = "String"
    STRING_VEC = "StringVec"
    BOOL = "Bool"


@dataclass(frozen=True)
class FlagOption:
    """Presence-only option."""

    kind = OptionKind.FLAG

    def to_json(self) -> str:
        return OptionKind.FLAG.value


@dataclass(frozen=True)
class StringOption:
    value: str

    kind = OptionKind.STRING

    def to_json(self) -> dict[str, str]:
        return {OptionKind.STRING.value: self.value}


@dataclass(frozen=True)
class StringVecOption:
    values: tuple[str, ...]

    kind = OptionKind.STRING_VEC

    def to_json(self) -> dict[str, list[str]]:
        return {OptionKind.STRING_VEC.value: list(self.values)}


@dataclass(frozen=True)
class BoolOption:
    value: bool

    kind = OptionKind.BOOL

    def to_json(self) -> dict[str, bool]:
        return {OptionKind.BOOL.value: self.value}


OptionValue = Union[FlagOption, StringOption, StringVecOption, BoolOption]


@dataclass(frozen=True)
class FileSource:
    """Asset read verbatim from a file under the source directory."""

    path: PurePosixPath


@dataclass(frozen=True)
class FilteredSource:
    """Asset produced by running a filter over other assets.

    Attributes:
        filter_name: Name of the filter in the filter registry
        input_names: Input asset names; order is passed through to the filter
        options: Options handed to the filter, keyed by option name
    """

    filter_name: str
    input_names: tuple[str, ...] = ()
    options: Mapping[str, OptionValue] = field(default_factory=dict)


AssetSource = Union[FileSource, FilteredSource]


@dataclass(frozen=True)
class AssetDefinition:
    """A single named asset from the manifest."""

    name: str
    extension: str
    source: AssetSource
    output_base_path: PurePosixPath | None = None

    @property
    def input_names(self) -> tuple[str, ...]:
        if isinstance(self.source, FilteredSource):
            return self.source.input_names
        return ()


@dataclass(frozen=True)
class Manifest:
    """Complete set of asset definitions for one pack run.

    Attributes:
        assets: Asset definitions keyed by name, in declaration order
        public_assets: Names whose versioned paths are exposed to callers
    """

    assets: Mapping[str, AssetDefinition]
    public_assets: tuple[str, ...] = ()

    def declaration_order(self) -> list[str]:
        return list(self.assets.keys())


@dataclass(frozen=True)
class ContentFingerprint:
    """SHA-256 digest identifying an asset's effective content."""

    digest: bytes

    def __post_init__(self) -> None:
        if len(self.digest) != 32:
            raise ValueError(f"Fingerprint must be 32 bytes, got {len(self.digest)}")

    @property
    def hex(self) -> str:
        return self.digest.hex()

    def prefix(self, length: int) -> str:
        return self.hex[:length]

    @classmethod
    def from_hex(cls, value: str) -> "ContentFingerprint":
        return cls(bytes.fromhex(value))

    def __str__(self) -> str:
        return self.hex


@dataclass(frozen=True)
class BuildStateEntry:
    fingerprint: ContentFingerprint
    output_path: PurePosixPath


@dataclass(frozen=True)
class BuildState:
    """Record of each asset's last fingerprint and output path.

    A pack run reads one BuildState and returns a new one; instances are
    never modified after construction.
    """

    entries: Mapping[str, BuildStateEntry] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "BuildState":
        return cls({})

    def get(self, name: str) -> BuildStateEntry | None:
        return self.entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


# JSON document shapes

class BuildStateEntryDocument(TypedDict):
    fingerprint: str  # Lowercase hex SHA-256
    output_path: str  # Relative to the output directory


class BuildStateDocument(TypedDict):
    version: int
    assets: dict[str, BuildStateEntryDocument]


class AssetDocument(TypedDict, total=False):
    extension: str
    output_base_path: str | None
    source: dict  # {"File": path} or {"Filtered": {...}}


class ManifestDocument(TypedDict):
    assets: dict[str, AssetDocument]
    public_assets: list[str]
