"""CLI integration tests for `spyglass scan`, `search`, `status`, and `ls`."""

from __future__ import annotations

import json
import os
from pathlib import Path

from click.testing import CliRunner

from spyglass.cli import cli


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory."""

    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    env["SPYGLASS__INDEXING__PROGRESS_INTERVAL_MS"] = "10"
    return env


def _populate_home(tmp_path: Path) -> Path:
    home = tmp_path / "home"
    (home / "projects" / "log").mkdir(parents=True)
    (home / "notes").mkdir()
    (home / "notes" / "app-log.txt").write_text("", encoding="utf-8")
    (home / "notes" / "catalog.md").write_text("", encoding="utf-8")
    (home / "node_modules" / "logger").mkdir(parents=True)
    return home


def test_cli_scan_json_reports_completed_progress(tmp_path: Path) -> None:
    """`spyglass scan --json` should persist the index and describe it."""

    home = _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["scan", "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["progress"]["is_complete"] is True
    # projects, projects/log, notes, two files, node_modules (not descended)
    assert payload["count"] == 6
    assert payload["persisted"] is True
    assert payload["index_path"] == str(home / ".spyglass" / "index.json")


def test_cli_search_json_ranks_results(tmp_path: Path) -> None:
    """`spyglass search --json` should rank names using the saved index."""

    _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    scan_result = runner.invoke(cli, ["scan", "--quiet"], env=env)
    assert scan_result.exit_code == 0

    search_result = runner.invoke(cli, ["search", "LOG", "--json"], env=env)
    assert search_result.exit_code == 0, search_result.output

    payload = json.loads(search_result.output)
    assert payload["query"] == "LOG"
    assert payload["count"] == 3
    names = [entry["name"] for entry in payload["results"]]
    assert names == ["log", "app-log.txt", "catalog.md"]
    first = payload["results"][0]
    assert first["is_directory"] is True
    assert first["parent_folder"] == "projects"


def test_cli_search_limit(tmp_path: Path) -> None:
    _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["search", "log", "--json", "--limit", "1"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [entry["name"] for entry in payload["results"]] == ["log"]


def test_cli_search_builds_index_when_missing(tmp_path: Path) -> None:
    """Searching without a saved index should scan first and persist it."""

    home = _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["search", "catalog", "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [entry["name"] for entry in payload["results"]] == ["catalog.md"]
    assert (home / ".spyglass" / "index.json").exists()


def test_cli_search_table_output(tmp_path: Path) -> None:
    _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(cli, ["scan", "--quiet"], env=env)

    hit = runner.invoke(cli, ["search", "catalog"], env=env)
    miss = runner.invoke(cli, ["search", "zzz-nothing"], env=env)

    assert hit.exit_code == 0
    assert "catalog.md" in hit.output
    assert miss.exit_code == 0
    assert "No matches" in miss.output


def test_cli_status_before_and_after_scan(tmp_path: Path) -> None:
    _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    before = runner.invoke(cli, ["status", "--json"], env=env)
    assert before.exit_code == 0
    assert json.loads(before.output)["loaded"] is False

    runner.invoke(cli, ["scan", "--quiet"], env=env)
    after = runner.invoke(cli, ["status", "--json"], env=env)

    assert after.exit_code == 0
    payload = json.loads(after.output)
    assert payload["loaded"] is True
    assert payload["count"] == 6


def test_cli_scan_summary_mode(tmp_path: Path) -> None:
    _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["scan", "--summary"], env=env)

    assert result.exit_code == 0
    assert "Scan summary" in result.output
    assert "entries=6" in result.output
    assert "Index written" not in result.output


def test_cli_scan_rejects_json_with_quiet(tmp_path: Path) -> None:
    _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["scan", "--json", "--quiet"], env=env)

    assert result.exit_code != 0
    assert "--json cannot be combined with --quiet" in result.output


def test_cli_ls_json_lists_folders_first(tmp_path: Path) -> None:
    home = _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    root_listing = runner.invoke(cli, ["ls", "--json"], env=env)
    assert root_listing.exit_code == 0, root_listing.output
    payload = json.loads(root_listing.output)
    assert payload["path"] == str(home)
    assert [item["name"] for item in payload["items"]] == ["node_modules", "notes", "projects"]


def test_cli_ls_reopens_remembered_location(tmp_path: Path) -> None:
    home = _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    first = runner.invoke(cli, ["ls", str(home / "notes"), "--json"], env=env)
    assert first.exit_code == 0, first.output
    assert [item["name"] for item in json.loads(first.output)["items"]] == [
        "app-log.txt",
        "catalog.md",
    ]

    again = runner.invoke(cli, ["ls", "--json"], env=env)

    assert again.exit_code == 0
    assert json.loads(again.output)["path"] == str(home / "notes")


def test_cli_ls_ignores_location_when_memory_disabled(tmp_path: Path) -> None:
    home = _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    runner.invoke(cli, ["config", "set", "remember_location", "--value", "false"], env=env)
    runner.invoke(cli, ["ls", str(home / "notes"), "--json"], env=env)
    again = runner.invoke(cli, ["ls", "--json"], env=env)

    assert again.exit_code == 0
    assert json.loads(again.output)["path"] == str(home)


def test_cli_ls_missing_path_reports_json_error(tmp_path: Path) -> None:
    _populate_home(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["ls", str(tmp_path / "missing"), "--json"], env=env)

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "browse_error"
