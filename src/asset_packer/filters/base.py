"""Base abstractions for asset filters.

This module defines the interface every filter implements to take part in
a pack run, along with small helpers for reading typed options.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import ClassVar

from ..config import UnknownOptionPolicy
from ..core.errors import OptionError, OptionTypeMismatch, UnknownOption
from ..core.types import (
    BoolOption,
    FlagOption,
    OptionKind,
    OptionValue,
    StringOption,
    StringVecOption,
)


class AssetFilter(ABC):
    """Abstract base class for all filters.

    A filter turns the output files of its input assets into one output
    file. Implementations must be deterministic: the same input contents
    and options must always produce the same bytes, otherwise reused
    outputs go stale without anyone noticing.

    Filters may be called from several worker threads at once and must not
    keep per-call state on the instance.

    Attributes:
        option_kinds: Option keys the filter understands and the variant
            each one must have
        required_options: Keys that must be present
    """

    option_kinds: ClassVar[Mapping[str, OptionKind]] = {}
    required_options: ClassVar[frozenset[str]] = frozenset()

    def validate(
        self,
        options: Mapping[str, OptionValue],
        unknown_options: UnknownOptionPolicy = UnknownOptionPolicy.FAIL,
    ) -> None:
        """Check option keys and variants before any file is touched.

        Args:
            options: Options from the manifest
            unknown_options: Whether keys missing from option_kinds fail
                or are ignored

        Raises:
            UnknownOption: If a key is not understood and the policy is FAIL
            OptionTypeMismatch: If a value has the wrong variant
            OptionError: If a required option is missing
        """
        for key, value in options.items():
            expected = self.option_kinds.get(key)
            if expected is None:
                if unknown_options is UnknownOptionPolicy.FAIL:
                    raise UnknownOption(key)
                continue
            if value.kind is not expected:
                raise OptionTypeMismatch(key, expected, value.kind)

        for key in sorted(self.required_options):
            if key not in options:
                raise OptionError(f"missing required option '{key}'")

    @abstractmethod
    def apply(
        self,
        input_paths: Sequence[Path],
        output_path: Path,
        options: Mapping[str, OptionValue],
    ) -> None:
        """Process input files and write the output file.

        Args:
            input_paths: Materialized outputs of the input assets, in the
                order the manifest lists them
            output_path: File to write; its parent directory exists
            options: Validated options

        Raises:
            FilterError: If processing fails
        """
        pass


def has_flag(options: Mapping[str, OptionValue], key: str) -> bool:
    return isinstance(options.get(key), FlagOption)


def get_string(options: Mapping[str, OptionValue], key: str, default: str | None = None) -> str | None:
    value = options.get(key)
    return value.value if isinstance(value, StringOption) else default


def get_strings(options: Mapping[str, OptionValue], key: str) -> tuple[str, ...]:
    value = options.get(key)
    return value.values if isinstance(value, StringVecOption) else ()


def get_bool(options: Mapping[str, OptionValue], key: str, default: bool = False) -> bool:
    value = options.get(key)
    return value.value if isinstance(value, BoolOption) else default
