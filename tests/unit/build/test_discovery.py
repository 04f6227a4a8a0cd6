"""Unit tests for entry-point discovery."""

import pytest

from rvbuild.build.discovery import discover_entry_points
from rvbuild.errors import SourceDirectoryError


class TestDiscoverEntryPoints:
    def test_returns_sorted_stems(self, tmp_path):
        for name in ("gamma.rs", "alpha.rs", "beta.rs"):
            (tmp_path / name).write_text("")
        assert discover_entry_points(tmp_path) == ("alpha", "beta", "gamma")

    def test_empty_directory_yields_empty_set(self, tmp_path):
        assert discover_entry_points(tmp_path) == ()

    def test_ignores_other_suffixes(self, tmp_path):
        (tmp_path / "alpha.rs").write_text("")
        (tmp_path / "README.md").write_text("")
        (tmp_path / "beta.rs.orig").write_text("")
        assert discover_entry_points(tmp_path) == ("alpha",)

    def test_is_not_recursive(self, tmp_path):
        (tmp_path / "alpha.rs").write_text("")
        nested = tmp_path / "helpers"
        nested.mkdir()
        (nested / "inner.rs").write_text("")
        assert discover_entry_points(tmp_path) == ("alpha",)

    def test_directory_named_like_source_is_skipped(self, tmp_path):
        (tmp_path / "odd.rs").mkdir()
        assert discover_entry_points(tmp_path) == ()

    def test_recomputed_on_every_call(self, tmp_path):
        (tmp_path / "alpha.rs").write_text("")
        assert discover_entry_points(tmp_path) == ("alpha",)
        (tmp_path / "beta.rs").write_text("")
        (tmp_path / "alpha.rs").unlink()
        assert discover_entry_points(tmp_path) == ("beta",)

    def test_custom_suffix(self, tmp_path):
        (tmp_path / "main.c").write_text("")
        (tmp_path / "other.rs").write_text("")
        assert discover_entry_points(tmp_path, suffix=".c") == ("main",)

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(SourceDirectoryError, match="not found"):
            discover_entry_points(tmp_path / "src" / "bin")

    def test_file_instead_of_directory_raises(self, tmp_path):
        path = tmp_path / "bin"
        path.write_text("")
        with pytest.raises(SourceDirectoryError, match="not a directory"):
            discover_entry_points(path)
