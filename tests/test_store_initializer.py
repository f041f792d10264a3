"""Tests for store initialization and session lifecycle"""

import json
import sqlite3
from unittest.mock import Mock

import pytest

from logbooks.application import store_initializer
from logbooks.application.store_initializer import StoreSession, initialize_store, locate_store
from logbooks.domain.errors import ErrorKind, LogbooksError
from logbooks.domain.models.paths import StoreOptions
from logbooks.infrastructure.environment import Environment
from logbooks.infrastructure.retry import RetryOptions, is_retryable_db_error
from logbooks.infrastructure.storage.database import LogbookDatabase, open_database
from logbooks.infrastructure.storage.migrations import MIGRATIONS


@pytest.fixture
def project(tmp_path):
    """Git project inside a fake home directory"""
    cwd = tmp_path / "project"
    (cwd / ".git").mkdir(parents=True)
    return cwd


@pytest.fixture
def env(tmp_path, project):
    return Environment(cwd=project, home=tmp_path)


def _fast_retry(**overrides) -> RetryOptions:
    defaults = dict(max_attempts=3, is_retryable=is_retryable_db_error, sleep=lambda _: None)
    defaults.update(overrides)
    return RetryOptions(**defaults)


def _tables(db) -> set:
    rows = db.connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    return {row["name"] for row in rows}


class TestInitializeStore:
    """Tests for initialize_store()"""

    def test_fresh_project(self, env, project):
        """Test a fresh project gets .logbook/logbook.sqlite with the schema applied"""
        db = initialize_store(env=env)
        try:
            assert db.path == project / ".logbook" / "logbook.sqlite"
            assert db.path.is_file()
            assert {"authors", "entries", "__logbooks_migrations"} <= _tables(db)
            assert db.foreign_keys_enabled()
            assert db.applied_migrations() == ["0000_initial"]
        finally:
            db.close()

    def test_second_initialization_is_idempotent(self, env):
        first = initialize_store(env=env)
        first.connection.execute(
            "INSERT INTO authors (id, type, created_at) VALUES ('alice', 'user', 1)"
        )
        first.close()

        second = initialize_store(env=env)
        try:
            assert second.applied_migrations() == ["0000_initial"]
            assert second.connection.execute("SELECT COUNT(*) FROM authors").fetchone()[0] == 1
        finally:
            second.close()

    def test_global_store(self, env, tmp_path):
        db = initialize_store(StoreOptions(global_=True), env=env)
        try:
            assert db.path == tmp_path / ".config" / "logbooks" / "logbook.sqlite"
        finally:
            db.close()

    def test_config_database_path(self, env, project):
        (project / ".logbooksrc.json").write_text(json.dumps({"database": {"path": "data"}}))

        db = initialize_store(env=env)
        try:
            assert db.path == project / "data" / "logbook.sqlite"
        finally:
            db.close()

    def test_legacy_store_is_adopted(self, env, project):
        legacy = open_database(project / "logbooks.sqlite")
        legacy.connection.execute(
            "INSERT INTO authors (id, type, created_at) VALUES ('bob', 'agent', 1)"
        )
        legacy.close()

        db = initialize_store(env=env)
        try:
            assert not (project / "logbooks.sqlite").exists()
            row = db.connection.execute("SELECT type FROM authors WHERE id = 'bob'").fetchone()
            assert row["type"] == "agent"
        finally:
            db.close()

    def test_legacy_toggle_from_options(self, env, project):
        (project / "logbook.sqlite").write_bytes(b"")

        db = initialize_store(StoreOptions(migrate_legacy=False), env=env)
        db.close()

        assert (project / "logbook.sqlite").exists()

    def test_legacy_toggle_from_config(self, env, project):
        (project / "logbook.sqlite").write_bytes(b"")
        (project / ".logbooksrc.json").write_text(json.dumps({"database": {"migrateLegacy": False}}))

        db = initialize_store(env=env)
        db.close()

        assert (project / "logbook.sqlite").exists()

    def test_invalid_config_is_validation_error(self, env, project):
        (project / ".logbooksrc.json").write_text(json.dumps({"author": {"defaultType": "robot"}}))

        with pytest.raises(LogbooksError) as exc_info:
            initialize_store(env=env)

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert not (project / ".logbook").exists()

    def test_transient_failure_is_retried(self, env, monkeypatch):
        calls = Mock(side_effect=[sqlite3.OperationalError("database is locked"), None])

        def flaky_open(path):
            calls(path)
            return open_database(path)

        monkeypatch.setattr(store_initializer, "open_database", flaky_open)

        db = initialize_store(env=env, retry_options=_fast_retry())
        db.close()

        assert calls.call_count == 2

    def test_permanent_failure_is_wrapped(self, env, monkeypatch):
        error = sqlite3.DatabaseError("file is not a database")
        opener = Mock(side_effect=error)
        monkeypatch.setattr(store_initializer, "open_database", opener)

        with pytest.raises(LogbooksError) as exc_info:
            initialize_store(env=env, retry_options=_fast_retry())

        assert opener.call_count == 1
        assert exc_info.value.kind is ErrorKind.DB
        assert exc_info.value.operation == "initialize_store"
        assert exc_info.value.cause is error

    def test_locked_migration_reopens_connection(self, env, monkeypatch):
        """Test a transient error inside migrate() reruns open and migrate on a new connection"""
        seen = []
        original_migrate = LogbookDatabase.migrate

        def flaky_migrate(self, migrations=MIGRATIONS):
            seen.append(self)
            if len(seen) == 1:
                raise sqlite3.OperationalError("database is locked")
            return original_migrate(self, migrations)

        monkeypatch.setattr(LogbookDatabase, "migrate", flaky_migrate)

        db = initialize_store(env=env, retry_options=_fast_retry())
        try:
            assert len(seen) == 2
            assert seen[0] is not seen[1]
            assert seen[0].closed
            assert seen[1] is db
            assert db.applied_migrations() == ["0000_initial"]
        finally:
            db.close()

    def test_foreign_config_json_does_not_block_global_store(self, env, project, tmp_path):
        (project / "config.json").write_text(json.dumps({"name": "unrelated-tool", "port": 8080}))

        db = initialize_store(StoreOptions(global_=True), env=env)
        try:
            assert db.path == tmp_path / ".config" / "logbooks" / "logbook.sqlite"
        finally:
            db.close()

    def test_exhausted_retries_are_wrapped(self, env, monkeypatch):
        opener = Mock(side_effect=sqlite3.OperationalError("database is locked"))
        monkeypatch.setattr(store_initializer, "open_database", opener)

        with pytest.raises(LogbooksError, match="database is locked") as exc_info:
            initialize_store(env=env, retry_options=_fast_retry(max_attempts=2))

        assert opener.call_count == 3
        assert exc_info.value.is_db

    def test_unusable_directory_is_generic_error(self, env, project):
        blocker = project / "blocker"
        blocker.write_text("a file, not a directory")

        with pytest.raises(LogbooksError) as exc_info:
            initialize_store(StoreOptions(path=blocker / "store"), env=env)

        assert exc_info.value.kind is ErrorKind.GENERIC


class TestLocateStore:
    def test_does_not_touch_disk(self, env, project):
        location = locate_store(env=env)

        assert location.loaded_config is None
        assert location.paths.root == project / ".logbook"
        assert not location.paths.root.exists()


class TestStoreSession:
    """Tests for StoreSession"""

    def test_handle_is_created_lazily_and_reused(self, env):
        session = StoreSession(env=env)
        assert not session.is_open

        first = session.get()
        assert session.is_open
        assert session.get() is first

        session.close()
        assert not session.is_open
        assert first.closed

    def test_context_manager_closes(self, env):
        with StoreSession(env=env) as session:
            db = session.get()

        assert db.closed
        assert not session.is_open

    def test_close_without_open_is_a_no_op(self, env):
        StoreSession(env=env).close()

    def test_reopen_after_close(self, env):
        session = StoreSession(env=env)
        first = session.get()
        session.close()

        second = session.get()
        try:
            assert second is not first
            assert not second.closed
        finally:
            session.close()
