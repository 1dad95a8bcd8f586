"""
Tests for persistence — atomic writes into the state directory.
"""

from pathlib import Path

import pytest

from wpenv.core.persistence.state_file import ensure_state_dir, write_text_atomic


class TestWriteTextAtomic:
    """Tests for atomic text writes."""

    def test_creates_parent(self, tmp_path: Path):
        """Missing parent directories are created."""
        path = tmp_path / ".wpenv" / "docker-compose.yml"
        write_text_atomic(path, "services: {}\n")
        assert path.read_text() == "services: {}\n"

    def test_replaces_existing(self, tmp_path: Path):
        """An existing file is replaced."""
        path = tmp_path / "out.yml"
        path.write_text("old")
        write_text_atomic(path, "new")
        assert path.read_text() == "new"

    def test_failed_write_leaves_no_temp_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """A failed write leaves no temp file behind."""
        path = tmp_path / "out.yml"
        path.write_text("old")

        def broken_replace(self, target):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "replace", broken_replace)
        with pytest.raises(OSError, match="disk full"):
            write_text_atomic(path, "new")

        assert path.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["out.yml"]


class TestEnsureStateDir:
    """Tests for state directory creation."""

    def test_idempotent(self, tmp_path: Path):
        """Creating the directory twice is harmless."""
        state = tmp_path / ".wpenv"
        assert ensure_state_dir(state) == state
        assert ensure_state_dir(state).is_dir()
