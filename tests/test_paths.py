"""Tests for path safety checks."""

import tempfile
from pathlib import Path

import pytest

from asset_packer.paths import validate_path_safety


class TestValidatePathSafety:
    """Test path traversal prevention."""

    def test_allows_paths_within_base(self) -> None:
        """Test that paths within base directory are allowed."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            # Should not raise
            validate_path_safety(base / "css" / "site-3f2a9c0d.css", base)

    def test_rejects_path_traversal(self) -> None:
        """Test that path traversal attempts are rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir) / "public"
            dangerous_path = base / ".." / "state.json"

            with pytest.raises(ValueError, match="escapes base directory"):
                validate_path_safety(dangerous_path, base)

    def test_rejects_symlink_out_of_base(self) -> None:
        """Test that a symlinked directory pointing outside is rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir) / "public"
            outside = Path(tmpdir) / "outside"
            base.mkdir()
            outside.mkdir()
            (base / "css").symlink_to(outside, target_is_directory=True)

            with pytest.raises(ValueError, match="escapes base directory"):
                validate_path_safety(base / "css" / "site.css", base)
