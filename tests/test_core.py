"""Tests for core infrastructure."""

import logging
import tempfile
from pathlib import Path

import pytest
from rich.logging import RichHandler

from tagstore.core.config import get_database_path, load_config, save_config, update_config
from tagstore.core.database import DatabaseConnection
from tagstore.core.exceptions import ConfigError, RepositoryError
from tagstore.core.log import configure_logging
from tagstore.core.migrations import CURRENT_SCHEMA_VERSION, get_schema_version, initialize_database


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def db(tmp_dir):
    """Create a fresh test database."""
    conn = DatabaseConnection(db_path=tmp_dir / "test.db")
    conn.connect()
    initialize_database(conn)
    yield conn
    conn.close()


@pytest.fixture
def config_dir(tmp_dir, monkeypatch):
    monkeypatch.setenv("TAGSTORE_CONFIG_DIR", str(tmp_dir / "config"))
    return tmp_dir / "config"


class TestDatabase:
    def test_connect_and_query(self, tmp_dir):
        conn = DatabaseConnection(db_path=tmp_dir / "test.db")
        conn.connect()
        conn.execute("CREATE TABLE test (id INTEGER PRIMARY KEY, name TEXT)")
        conn.execute("INSERT INTO test VALUES (1, 'hello')")
        conn.commit()
        row = conn.fetchone("SELECT * FROM test WHERE id = 1")
        assert row["name"] == "hello"
        conn.close()

    def test_transaction_rollback(self, tmp_dir):
        conn = DatabaseConnection(db_path=tmp_dir / "test.db")
        conn.connect()
        conn.execute("CREATE TABLE test (id INTEGER PRIMARY KEY)")
        conn.commit()

        try:
            with conn.transaction():
                conn.execute("INSERT INTO test VALUES (1)")
                raise ValueError("oops")
        except ValueError:
            pass

        row = conn.fetchone("SELECT COUNT(*) as cnt FROM test")
        assert row["cnt"] == 0
        conn.close()

    def test_not_connected(self, tmp_dir):
        conn = DatabaseConnection(db_path=tmp_dir / "test.db")
        with pytest.raises(RepositoryError, match="not connected"):
            conn.fetchall("SELECT 1")

    def test_sql_error_wrapped(self, tmp_dir):
        with DatabaseConnection(db_path=tmp_dir / "test.db") as conn:
            with pytest.raises(RepositoryError, match="SQL error"):
                conn.execute("SELECT * FROM no_such_table")

    def test_connect_failure(self, tmp_dir):
        conn = DatabaseConnection(db_path=tmp_dir / "missing" / "dir" / "test.db")
        with pytest.raises(RepositoryError, match="Failed to connect"):
            conn.connect()


class TestMigrations:
    def test_initialize_creates_tables(self, db):
        assert get_schema_version(db) == CURRENT_SCHEMA_VERSION

        tables = db.fetchall("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
        table_names = [t["name"] for t in tables]
        assert "tag_article" in table_names
        assert "schema_version" in table_names

    def test_indexes(self, db):
        rows = db.fetchall("SELECT name FROM sqlite_master WHERE type='index' AND tbl_name='tag_article'")
        names = {r["name"] for r in rows}
        assert {"idx_tag_article_tag", "idx_tag_article_article", "idx_tag_article_pair"} <= names

    def test_rerun_is_noop(self, db):
        assert initialize_database(db) == CURRENT_SCHEMA_VERSION
        row = db.fetchone("SELECT COUNT(*) as cnt FROM schema_version")
        assert row["cnt"] == CURRENT_SCHEMA_VERSION

    def test_fresh_database_version_zero(self, tmp_dir):
        with DatabaseConnection(db_path=tmp_dir / "empty.db") as conn:
            assert get_schema_version(conn) == 0


class TestConfig:
    def test_defaults_when_missing(self, config_dir):
        config = load_config()
        assert config["query"]["default_page_size"] == 20
        assert config["database"]["filename"] == "tagstore.db"

    def test_save_and_merge(self, config_dir):
        save_config({"query": {"default_page_size": 5}})
        config = load_config()
        assert config["query"]["default_page_size"] == 5
        # Untouched sections keep their defaults
        assert config["logging"]["level"] == "WARNING"

    def test_update_config(self, config_dir):
        update_config(logging={"level": "DEBUG"})
        assert load_config()["logging"]["level"] == "DEBUG"

    def test_invalid_toml(self, config_dir):
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "tagstore.toml").write_text("not = [valid")
        with pytest.raises(ConfigError):
            load_config()

    def test_database_path(self, config_dir, tmp_dir):
        config = load_config()
        config["general"]["data_dir"] = str(tmp_dir / "data")
        assert get_database_path(config) == tmp_dir / "data" / "tagstore.db"
        assert (tmp_dir / "data").is_dir()


class TestLogging:
    def test_level_from_name(self):
        logger = configure_logging("debug")
        assert logger.level == logging.DEBUG

    def test_unknown_level_falls_back(self):
        logger = configure_logging("chatty")
        assert logger.level == logging.WARNING

    def test_single_handler(self):
        configure_logging("INFO")
        logger = configure_logging("INFO")
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
