"""Integration tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest
from click.testing import CliRunner

from tagstore.cli.main import cli
from tagstore.core.migrations import CURRENT_SCHEMA_VERSION


@pytest.fixture
def tmp_dir(monkeypatch):
    with tempfile.TemporaryDirectory() as d:
        monkeypatch.setenv("TAGSTORE_CONFIG_DIR", str(Path(d) / "config"))
        yield Path(d)


@pytest.fixture
def run(tmp_dir):
    """Return an invoker bound to a fresh, initialized temp database.

    Global options (--json) go before the subcommand: run("--json", "by-tag", "T1").
    """
    runner = CliRunner()
    db_path = str(tmp_dir / "cli.db")

    def invoke(*args: str):
        return runner.invoke(cli, ["--db", db_path, *args])

    result = invoke("init")
    assert result.exit_code == 0, result.output
    return invoke


def _json(result):
    return json.loads(result.stdout)


class TestRootCLI:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("init", "link", "unlink", "by-article", "by-tag"):
            assert name in result.output

    def test_version(self):
        from tagstore import __version__

        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestInit:
    def test_json_reports_schema_version(self, run):
        result = run("--json", "init")
        assert result.exit_code == 0
        assert _json(result)["data"]["schema_version"] == CURRENT_SCHEMA_VERSION

    def test_human_output(self, run):
        result = run("init")
        assert result.exit_code == 0
        assert f"schema v{CURRENT_SCHEMA_VERSION}" in result.output


class TestLink:
    def test_link_and_lookup(self, run):
        result = run("--json", "link", "T1", "A1")
        assert result.exit_code == 0
        relation = _json(result)["data"]
        assert relation["tag_id"] == "T1"
        assert relation["article_id"] == "A1"

        result = run("--json", "by-article", "A1")
        assert result.exit_code == 0
        assert _json(result)["data"] == [relation]

    def test_duplicate_link_fails(self, run):
        run("link", "T1", "A1")
        result = run("--json", "link", "T1", "A1")
        assert result.exit_code == 1
        assert _json(result)["status"] == "error"

    def test_empty_ids_rejected(self, run):
        result = run("--json", "link", "", "")
        assert result.exit_code == 1
        assert _json(result)["status"] == "error"

        result = run("link", "T1", "")
        assert result.exit_code == 1
        assert "Linked" not in result.output
        assert "at least 1 character" in result.output

    def test_unlink(self, run):
        relation_id = _json(run("--json", "link", "T1", "A1"))["data"]["id"]

        result = run("--json", "unlink", relation_id)
        assert result.exit_code == 0
        assert _json(result)["data"] == {"id": relation_id, "removed": True}

        assert _json(run("--json", "by-article", "A1"))["data"] == []

        result = run("--json", "unlink", relation_id)
        assert _json(result)["data"]["removed"] is False


class TestByTag:
    def test_paged_json(self, run):
        for i in range(1, 26):
            run("link", "T1", f"A{i:02d}")

        data = _json(run("--json", "by-tag", "T1", "--page", "3", "--page-size", "10"))["data"]
        assert [r["article_id"] for r in data["relations"]] == ["A05", "A04", "A03", "A02", "A01"]
        assert data["page_count"] == 3
        assert data["record_count"] == 25

    def test_default_page_size_from_config(self, run):
        from tagstore.core.config import update_config

        update_config(query={"default_page_size": 2})
        for a in ("A1", "A2", "A3"):
            run("link", "T1", a)

        data = _json(run("--json", "by-tag", "T1"))["data"]
        assert [r["article_id"] for r in data["relations"]] == ["A3", "A2"]
        assert data["page_size"] == 2
        assert data["page_count"] == 2

    def test_human_table(self, run):
        run("link", "T1", "A1")
        result = run("by-tag", "T1")
        assert result.exit_code == 0
        assert "A1" in result.output

    def test_page_far_past_end(self, run):
        run("link", "T1", "A1")
        result = run("--json", "by-tag", "T1", "--page", str(10**18), "--page-size", "10")
        assert result.exit_code == 0
        data = _json(result)["data"]
        assert data["relations"] == []
        assert data["page_count"] == 1

    def test_bad_page(self, run):
        result = run("--json", "by-tag", "T1", "--page", "0")
        assert result.exit_code == 1
        assert "Page number" in _json(result)["error"]["message"]


class TestErrors:
    def test_uninitialized_database(self, tmp_dir):
        result = CliRunner().invoke(cli, ["--db", str(tmp_dir / "fresh.db"), "by-article", "A1"])
        assert result.exit_code == 1
        assert "Table not found" in result.output
