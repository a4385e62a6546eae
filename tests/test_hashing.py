"""Tests for content fingerprints."""

import hashlib
from pathlib import Path, PurePosixPath
from unittest.mock import patch

import pytest

from asset_packer.core.errors import SourceFileMissing, SourceReadFailed, UpstreamFailed
from asset_packer.core.manifest import parse_manifest
from asset_packer.core.types import (
    AssetDefinition,
    BoolOption,
    ContentFingerprint,
    FileSource,
    FilteredSource,
    StringOption,
)
from asset_packer.graph import build_graph
from asset_packer.hashing import canonical_options, fingerprint, fingerprint_all

from conftest import file_asset, filtered_asset


def sha(data: bytes) -> ContentFingerprint:
    return ContentFingerprint(hashlib.sha256(data).digest())


def filtered(filter_name: str = "concat", inputs=("a", "b"), options=None) -> AssetDefinition:
    return AssetDefinition(
        name="out",
        extension="txt",
        source=FilteredSource(filter_name, tuple(inputs), options or {}),
    )


class TestContentFingerprint:
    """Test the fingerprint value type."""

    def test_hex_and_prefix(self) -> None:
        fp = ContentFingerprint(bytes(range(32)))
        assert fp.hex == bytes(range(32)).hex()
        assert fp.prefix(8) == "00010203"
        assert str(fp) == fp.hex
        assert ContentFingerprint.from_hex(fp.hex) == fp

    def test_rejects_wrong_size(self) -> None:
        with pytest.raises(ValueError, match="32 bytes"):
            ContentFingerprint(b"short")


class TestFileFingerprint:
    """Test fingerprints of file sources."""

    def test_is_sha256_of_bytes(self, tmp_path: Path) -> None:
        """Test that a file's fingerprint is the SHA-256 of its content."""
        (tmp_path / "a.css").write_bytes(b"body { color: red }\n")
        asset = AssetDefinition("a", "css", FileSource(PurePosixPath("a.css")))

        assert fingerprint(asset, [], tmp_path) == sha(b"body { color: red }\n")

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing source raises SourceFileMissing."""
        asset = AssetDefinition("a", "css", FileSource(PurePosixPath("nope.css")))

        with pytest.raises(SourceFileMissing) as exc_info:
            fingerprint(asset, [], tmp_path)

        assert exc_info.value.asset == "a"
        assert "nope.css" in str(exc_info.value)

    def test_unreadable_file(self, tmp_path: Path) -> None:
        """Test that a read error is reported against the source path."""
        (tmp_path / "locked.css").write_text("x")
        asset = AssetDefinition("a", "css", FileSource(PurePosixPath("locked.css")))

        with patch.object(Path, "open", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(SourceReadFailed) as exc_info:
                fingerprint(asset, [], tmp_path)

        assert exc_info.value.path == tmp_path / "locked.css"
        assert "Permission denied" in str(exc_info.value)

    def test_directory_is_missing_file(self, tmp_path: Path) -> None:
        """Test that a directory in place of a file is reported as missing."""
        (tmp_path / "dir").mkdir()
        asset = AssetDefinition("a", "css", FileSource(PurePosixPath("dir")))

        with pytest.raises(SourceFileMissing):
            fingerprint(asset, [], tmp_path)


class TestFilteredFingerprint:
    """Test fingerprint composition for filtered sources."""

    def test_deterministic(self, tmp_path: Path) -> None:
        """Test that identical inputs give identical fingerprints."""
        inputs = [sha(b"a"), sha(b"b")]
        assert fingerprint(filtered(), inputs, tmp_path) == fingerprint(filtered(), inputs, tmp_path)

    def test_option_key_order_irrelevant(self, tmp_path: Path) -> None:
        """Test that options are hashed in canonical form."""
        inputs = [sha(b"a"), sha(b"b")]
        first = filtered(options={"separator": StringOption(","), "trailing_newline": BoolOption(True)})
        second = filtered(options={"trailing_newline": BoolOption(True), "separator": StringOption(",")})

        assert fingerprint(first, inputs, tmp_path) == fingerprint(second, inputs, tmp_path)

    def test_option_values_matter(self, tmp_path: Path) -> None:
        inputs = [sha(b"a"), sha(b"b")]
        first = filtered(options={"separator": StringOption(",")})
        second = filtered(options={"separator": StringOption(";")})

        assert fingerprint(first, inputs, tmp_path) != fingerprint(second, inputs, tmp_path)

    def test_input_order_matters(self, tmp_path: Path) -> None:
        """Test that swapping inputs changes the fingerprint."""
        a, b = sha(b"a"), sha(b"b")
        assert fingerprint(filtered(), [a, b], tmp_path) != fingerprint(filtered(), [b, a], tmp_path)

    def test_filter_name_matters(self, tmp_path: Path) -> None:
        inputs = [sha(b"a"), sha(b"b")]
        assert (
            fingerprint(filtered("concat"), inputs, tmp_path)
            != fingerprint(filtered("banner"), inputs, tmp_path)
        )

    def test_input_content_matters(self, tmp_path: Path) -> None:
        assert (
            fingerprint(filtered(), [sha(b"a"), sha(b"b")], tmp_path)
            != fingerprint(filtered(), [sha(b"a"), sha(b"c")], tmp_path)
        )

    def test_canonical_options(self) -> None:
        """Test the canonical serialization of options."""
        options = {"b": BoolOption(False), "a": StringOption("x")}
        assert canonical_options(options) == '{"a":{"String":"x"},"b":{"Bool":false}}'


class TestFingerprintAll:
    """Test fingerprinting a whole manifest."""

    def test_change_reaches_transitive_dependents(self, tmp_path: Path) -> None:
        """Test that editing a leaf changes every asset downstream of it."""
        manifest = parse_manifest({
            "assets": {
                "a": file_asset("a.txt"),
                "b": filtered_asset("concat", ["a"]),
                "c": filtered_asset("concat", ["b"]),
                "other": file_asset("other.txt"),
            },
        })
        graph = build_graph(manifest)
        (tmp_path / "a.txt").write_text("one")
        (tmp_path / "other.txt").write_text("same")

        before = fingerprint_all(manifest, graph, tmp_path)
        (tmp_path / "a.txt").write_text("two")
        after = fingerprint_all(manifest, graph, tmp_path)

        assert before["a"] != after["a"]
        assert before["b"] != after["b"]
        assert before["c"] != after["c"]
        assert before["other"] == after["other"]

    def test_collects_source_failures(self, tmp_path: Path) -> None:
        """Test that a failures dict turns missing sources into per-asset errors."""
        manifest = parse_manifest({
            "assets": {
                "gone": file_asset("gone.txt"),
                "uses_gone": filtered_asset("concat", ["gone"]),
                "uses_both": filtered_asset("concat", ["uses_gone", "here"]),
                "here": file_asset("here.txt"),
            },
        })
        (tmp_path / "here.txt").write_text("here")
        failures = {}

        fingerprints = fingerprint_all(manifest, build_graph(manifest), tmp_path, failures)

        assert list(fingerprints) == ["here"]
        assert isinstance(failures["gone"], SourceFileMissing)
        assert isinstance(failures["uses_gone"], UpstreamFailed)
        assert failures["uses_both"].failed_input == "gone"

    def test_raises_without_failures_dict(self, tmp_path: Path) -> None:
        manifest = parse_manifest({"assets": {"gone": file_asset("gone.txt")}})

        with pytest.raises(SourceFileMissing):
            fingerprint_all(manifest, build_graph(manifest), tmp_path)

    def test_repeatable(self, tmp_path: Path) -> None:
        """Test that fingerprints are bit-identical across calls."""
        manifest = parse_manifest({
            "assets": {
                "a": file_asset("a.txt"),
                "b": filtered_asset("concat", ["a", "a"], options={"strip": "Flag"}),
            },
        })
        graph = build_graph(manifest)
        (tmp_path / "a.txt").write_bytes(b"\x00\x01binary\xff")

        assert fingerprint_all(manifest, graph, tmp_path) == fingerprint_all(manifest, graph, tmp_path)
