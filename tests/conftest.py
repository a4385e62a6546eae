"""Shared fixtures and helpers for asset packer tests."""

import threading
from pathlib import Path
from typing import Any

import pytest

from asset_packer.config import PackConfig, UnknownOptionPolicy
from asset_packer.core.errors import FilterError
from asset_packer.core.types import OptionKind
from asset_packer.filters.base import AssetFilter, get_string
from asset_packer.registry import FilterRegistry


# ============================================================================
# Manifest helpers
# ============================================================================

def file_asset(path: str, extension: str = "txt", output_base_path: str | None = None) -> dict[str, Any]:
    """Manifest entry for a file-backed asset."""
    asset: dict[str, Any] = {"extension": extension, "source": {"File": path}}
    if output_base_path is not None:
        asset["output_base_path"] = output_base_path
    return asset


def filtered_asset(
    filter_name: str,
    input_names: list[str],
    options: dict[str, Any] | None = None,
    extension: str = "txt",
    output_base_path: str | None = None,
) -> dict[str, Any]:
    """Manifest entry for a filter-produced asset."""
    filtered: dict[str, Any] = {"filter_name": filter_name, "input_names": input_names}
    if options is not None:
        filtered["options"] = options
    asset: dict[str, Any] = {"extension": extension, "source": {"Filtered": filtered}}
    if output_base_path is not None:
        asset["output_base_path"] = output_base_path
    return asset


def write_source(config: PackConfig, relative_path: str, content: str) -> Path:
    path = config.source_directory / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# ============================================================================
# Test filters
# ============================================================================

class RecordingFilter(AssetFilter):
    """Concatenates input bytes and records every call."""

    option_kinds = {
        "compressed": OptionKind.BOOL,
        "suffix": OptionKind.STRING,
    }

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def apply(self, input_paths, output_path, options) -> None:
        with self._lock:
            self.calls.append([path.name for path in input_paths])
        content = b"".join(path.read_bytes() for path in input_paths)
        content += get_string(options, "suffix", "").encode("utf-8")
        output_path.write_bytes(content)


class CountingValidationFilter(RecordingFilter):
    """RecordingFilter that counts validate() calls."""

    def __init__(self) -> None:
        super().__init__()
        self.validations = 0

    def validate(self, options, unknown_options=UnknownOptionPolicy.FAIL) -> None:
        self.validations += 1
        super().validate(options, unknown_options)


class FailingFilter(AssetFilter):
    """Always fails."""

    def apply(self, input_paths, output_path, options) -> None:
        raise FilterError("boom")


@pytest.fixture
def config(tmp_path: Path) -> PackConfig:
    """Config with source and output directories inside tmp_path."""
    source_directory = tmp_path / "source"
    source_directory.mkdir()
    return PackConfig(
        source_directory=source_directory,
        output_directory=tmp_path / "internal",
        max_workers=2,
    )


@pytest.fixture
def recorder() -> RecordingFilter:
    return RecordingFilter()


@pytest.fixture
def registry(recorder: RecordingFilter) -> FilterRegistry:
    """Bundled filters plus 'record' and 'fail' test filters."""
    registry = FilterRegistry()
    registry.discover_filters()
    registry.register("record", recorder)
    registry.register("fail", FailingFilter())
    return registry
