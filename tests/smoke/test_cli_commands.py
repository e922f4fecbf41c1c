"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work end to end
against a throwaway SQLite database.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json

import pytest
from sqlalchemy.exc import OperationalError
from typer.testing import CliRunner

from src.cli import main as cli
from src.db import database
from src.db.repository import CardRepository

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_database(tmp_path, monkeypatch):
    """Point the CLI at a fresh SQLite file."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    monkeypatch.setattr(database, "_engine", None)
    monkeypatch.setattr(database, "_SessionLocal", None)
    yield
    if database._engine is not None:
        database._engine.dispose()


@pytest.fixture
def seed_file(tmp_path, sample_payload):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(sample_payload.model_dump(mode="json")), encoding="utf-8")
    return path


class TestCLIHelp:

    def test_main_help(self):
        result = runner.invoke(cli.app, ["--help"])
        assert result.exit_code == 0
        assert "fetch" in result.stdout
        assert "review" in result.stdout

    @pytest.mark.parametrize("command", ["fetch", "review", "import", "export", "edit"])
    def test_command_help(self, command):
        result = runner.invoke(cli.app, [command, "--help"])
        assert result.exit_code == 0, result.stdout


class TestImportExport:

    def test_db_init(self):
        result = runner.invoke(cli.app, ["db", "init"])
        assert result.exit_code == 0
        assert "initialized" in result.stdout

    def test_import_then_list(self, seed_file):
        result = runner.invoke(cli.app, ["import", str(seed_file)])
        assert result.exit_code == 0, result.stdout
        assert "Imported 2 topics" in result.stdout

        result = runner.invoke(cli.app, ["topics"])
        assert result.exit_code == 0
        assert "Limits" in result.stdout
        assert "Derivatives" in result.stdout

        result = runner.invoke(cli.app, ["cards", "topic-limits"])
        assert result.exit_code == 0
        assert "Squeeze theorem" in result.stdout

    def test_import_invalid_file(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{oops", encoding="utf-8")

        result = runner.invoke(cli.app, ["import", str(bad)])

        assert result.exit_code == 1
        assert "Import failed" in result.stdout

    def test_export(self, seed_file, tmp_path):
        runner.invoke(cli.app, ["import", str(seed_file)])
        out = tmp_path / "out.json"

        result = runner.invoke(cli.app, ["export", str(out)])

        assert result.exit_code == 0
        assert len(json.loads(out.read_text(encoding="utf-8"))["cards"]) == 4

    def test_edit_card(self, seed_file):
        runner.invoke(cli.app, ["import", str(seed_file)])

        result = runner.invoke(cli.app, ["edit", "card-2", "--answer", "Bounded between two limits"])
        assert result.exit_code == 0

        result = runner.invoke(cli.app, ["cards", "topic-limits"])
        assert "Bounded between two limits" in result.stdout

    def test_unknown_ids(self, seed_file):
        runner.invoke(cli.app, ["import", str(seed_file)])
        assert runner.invoke(cli.app, ["edit", "missing", "-a", "x"]).exit_code == 1
        assert runner.invoke(cli.app, ["cards", "missing"]).exit_code == 1
        assert runner.invoke(cli.app, ["review", "missing"]).exit_code == 1

    @pytest.mark.parametrize(
        "method,args",
        [
            ("list_topics", ["topics"]),
            ("get_topic", ["cards", "topic-limits"]),
            ("list_topics", ["review"]),
        ],
    )
    def test_database_error_exits_cleanly(self, monkeypatch, seed_file, method, args):
        runner.invoke(cli.app, ["import", str(seed_file)])

        def broken(self, *a, **kw):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(CardRepository, method, broken)

        result = runner.invoke(cli.app, args)

        assert result.exit_code == 1
        assert "Database error" in result.stdout

    def test_topics_on_empty_store(self):
        result = runner.invoke(cli.app, ["topics"])
        assert result.exit_code == 0
        assert "No topics yet" in result.stdout


class TestFetch:

    def test_fetch_imports_payload(self, monkeypatch, sample_payload):
        monkeypatch.setattr(cli, "_acquire", lambda url, parallel=False: sample_payload)

        result = runner.invoke(cli.app, ["fetch", "https://tickets.notion.site/Index"])

        assert result.exit_code == 0, result.stdout
        assert "Import complete" in result.stdout
        assert "Limits" in runner.invoke(cli.app, ["topics"]).stdout

    def test_fetch_dry_run_writes_nothing(self, monkeypatch, sample_payload):
        monkeypatch.setattr(cli, "_acquire", lambda url, parallel=False: sample_payload)

        result = runner.invoke(cli.app, ["fetch", "https://tickets.notion.site/Index", "--dry-run"])

        assert result.exit_code == 0
        assert "No topics yet" in runner.invoke(cli.app, ["topics"]).stdout

    def test_fetch_failure_keeps_existing_deck(self, monkeypatch, seed_file):
        runner.invoke(cli.app, ["import", str(seed_file)])
        monkeypatch.setattr(cli, "_acquire", lambda url, parallel=False: None)

        result = runner.invoke(cli.app, ["fetch", "https://tickets.notion.site/Index"])

        assert result.exit_code == 1
        assert "Limits" in runner.invoke(cli.app, ["topics"]).stdout

    def test_reset_with_unavailable_source(self, monkeypatch, seed_file):
        runner.invoke(cli.app, ["import", str(seed_file)])
        monkeypatch.setattr(cli, "_acquire", lambda url, parallel=False: None)

        result = runner.invoke(cli.app, ["reset"])

        assert result.exit_code == 0
        assert "No topics yet" in runner.invoke(cli.app, ["topics"]).stdout


class TestReview:

    def test_review_two_cards(self, seed_file):
        runner.invoke(cli.app, ["import", str(seed_file)])

        result = runner.invoke(cli.app, ["review", "topic-limits", "--limit", "2"], input="\ny\n\nn\n")

        assert result.exit_code == 0, result.stdout
        assert "Define a limit" in result.stdout
        assert "Reviewed 2 cards" in result.stdout
        assert "(1 correct)" in result.stdout

    def test_review_quit_immediately(self, seed_file):
        runner.invoke(cli.app, ["import", str(seed_file)])

        result = runner.invoke(cli.app, ["review"], input="q\n")

        assert result.exit_code == 0
        assert "Reviewed 0 cards" in result.stdout

    def test_review_empty_store(self):
        result = runner.invoke(cli.app, ["review"])
        assert result.exit_code == 0
        assert "No cards to review" in result.stdout
