"""Tests for moving legacy single-file stores"""

import logging
import shutil

import pytest

from logbooks.domain.errors import ErrorKind, LogbooksError
from logbooks.infrastructure.storage.legacy import find_legacy_store, migrate_legacy_store

LEGACY_BYTES = b"SQLite format 3\x00legacy-data"


@pytest.fixture
def workdir(tmp_path):
    cwd = tmp_path / "project"
    cwd.mkdir()
    return cwd


class TestFindLegacyStore:
    """Tests for find_legacy_store()"""

    def test_nothing_found(self, workdir):
        assert find_legacy_store(workdir) is None

    def test_plural_name_checked_first(self, workdir):
        (workdir / "logbook.sqlite").write_bytes(b"singular")
        (workdir / "logbooks.sqlite").write_bytes(b"plural")

        assert find_legacy_store(workdir) == workdir / "logbooks.sqlite"

    def test_directory_is_not_a_store(self, workdir):
        (workdir / "logbooks.sqlite").mkdir()

        assert find_legacy_store(workdir) is None


class TestMigrateLegacyStore:
    """Tests for migrate_legacy_store()"""

    def test_moves_file_and_preserves_bytes(self, workdir):
        (workdir / "logbooks.sqlite").write_bytes(LEGACY_BYTES)
        root = workdir / ".logbook"

        moved = migrate_legacy_store(root, workdir)

        assert moved == root / "logbook.sqlite"
        assert moved.read_bytes() == LEGACY_BYTES
        assert not (workdir / "logbooks.sqlite").exists()

    def test_no_legacy_file_is_a_no_op(self, workdir):
        assert migrate_legacy_store(workdir / ".logbook", workdir) is None
        assert not (workdir / ".logbook").exists()

    def test_existing_target_is_never_overwritten(self, workdir, caplog):
        """Test a conflict leaves both files untouched and logs a warning"""
        (workdir / "logbooks.sqlite").write_bytes(LEGACY_BYTES)
        root = workdir / ".logbook"
        root.mkdir()
        (root / "logbook.sqlite").write_bytes(b"current")

        with caplog.at_level(logging.WARNING):
            assert migrate_legacy_store(root, workdir) is None

        assert (root / "logbook.sqlite").read_bytes() == b"current"
        assert (workdir / "logbooks.sqlite").read_bytes() == LEGACY_BYTES
        assert "Migration skipped" in caplog.text

    def test_disabled_only_warns(self, workdir, caplog):
        (workdir / "logbook.sqlite").write_bytes(LEGACY_BYTES)
        root = workdir / ".logbook"

        with caplog.at_level(logging.WARNING):
            assert migrate_legacy_store(root, workdir, enabled=False) is None

        assert (workdir / "logbook.sqlite").exists()
        assert not (root / "logbook.sqlite").exists()
        assert "automatic migration is disabled" in caplog.text

    def test_legacy_file_already_at_target(self, workdir):
        """Test a store rooted at cwd does not move onto itself"""
        (workdir / "logbook.sqlite").write_bytes(LEGACY_BYTES)

        assert migrate_legacy_store(workdir, workdir) is None
        assert (workdir / "logbook.sqlite").read_bytes() == LEGACY_BYTES

    def test_move_failure_raises_db_error(self, workdir, monkeypatch):
        (workdir / "logbooks.sqlite").write_bytes(LEGACY_BYTES)

        def fail_move(src, dst):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(shutil, "move", fail_move)

        with pytest.raises(LogbooksError) as exc_info:
            migrate_legacy_store(workdir / ".logbook", workdir)

        error = exc_info.value
        assert error.kind is ErrorKind.DB
        assert error.operation == "migrate_legacy_store"
        assert isinstance(error.cause, PermissionError)
        assert (workdir / "logbooks.sqlite").exists()
