"""Tests for the webcache command line tool."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from webcache import __version__
from webcache.cli import app
from webcache.exit_codes import EXIT_GENERIC_FAILURE, EXIT_NO_MATCH
from webcache.stores import DiskStore


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _disk_config(tmp_path: Path, cache_dir: Path) -> Path:
    path = tmp_path / "disk.json"
    path.write_text(
        json.dumps(
            {
                "rules": [{"match": "^/a"}],
                "store": {"backend": "disk", "directory": str(cache_dir)},
            }
        )
    )
    return path


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"webcache {__version__}" in result.output


class TestCheck:
    def test_lists_rules(self, runner: CliRunner, yaml_config: Path) -> None:
        result = runner.invoke(app, ["check", str(yaml_config)])
        assert result.exit_code == 0, result.output
        assert r"^/article/\w+" in result.output
        assert "3600s" in result.output
        assert "500ms" in result.output
        assert "memory" in result.output

    def test_disk_backend_reports_record_count(self, runner: CliRunner, tmp_path: Path) -> None:
        cache_dir = tmp_path / "cache"
        store = DiskStore(cache_dir)
        asyncio.run(store.set("wc_/a_", b"body", 60_000))
        asyncio.run(store.set("wc_/a__ct", "text/plain", 60_000))
        store.close()
        path = _disk_config(tmp_path, cache_dir)

        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 0, result.output
        assert "disk cache: 2 records" in " ".join(result.output.split())

    def test_disk_backend_missing_directory_not_created(
        self, runner: CliRunner, tmp_path: Path
    ) -> None:
        cache_dir = tmp_path / "cache"
        result = runner.invoke(app, ["check", str(_disk_config(tmp_path, cache_dir))])
        assert result.exit_code == 0, result.output
        assert "does not exist yet" in " ".join(result.output.split())
        assert not cache_dir.exists()

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("rules: []\n")
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == EXIT_GENERIC_FAILURE

    def test_missing_config(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(app, ["check", str(tmp_path / "missing.yaml")])
        assert result.exit_code == EXIT_GENERIC_FAILURE


class TestKey:
    def test_matching_url(self, runner: CliRunner, yaml_config: Path) -> None:
        result = runner.invoke(app, ["key", str(yaml_config), "/article/42?ref=home"])
        assert result.exit_code == 0, result.output
        assert "wc_/article/42_2012" in result.output
        assert "wc_/article/42_2012_ct" in result.output

    def test_root_keeps_query(self, runner: CliRunner, yaml_config: Path) -> None:
        result = runner.invoke(app, ["key", str(yaml_config), "/?page=2"])
        assert result.exit_code == 0, result.output
        assert "wc_/?page=2_2012" in result.output

    def test_encoded_question_mark_stays_in_path(self, runner: CliRunner, yaml_config: Path) -> None:
        result = runner.invoke(app, ["key", str(yaml_config), "/article/a%3Fb"])
        assert result.exit_code == 0, result.output
        assert "wc_/article/a%3Fb_2012" in result.output

    def test_no_match(self, runner: CliRunner, yaml_config: Path) -> None:
        result = runner.invoke(app, ["key", str(yaml_config), "/nothing/here"])
        assert result.exit_code == EXIT_NO_MATCH
