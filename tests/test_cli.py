"""Tests for the command-line interface."""

import logging

import pytest
import yaml
from click.testing import CliRunner
from rich.console import Console

from conftest import MemoryBackend, write_file
from cloudsync.cli import cli
from cloudsync.config.settings import SyncConfig


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr("cloudsync.cli.console", Console(width=200))
    yield
    package_logger = logging.getLogger("cloudsync")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def remotes():
    return {"cloud": MemoryBackend("cloud")}


@pytest.fixture
def setup(tmp_path, local_root, remotes, monkeypatch):
    config = SyncConfig(
        local_root=local_root,
        remotes=[{"type": "aws_s3", "name": "cloud", "bucket": "bucket"}],
    )
    config_path = tmp_path / "config.yaml"
    config.to_yaml(config_path)

    def factory(remote_config, credentials, options):
        return remotes[remote_config.name]

    monkeypatch.setattr("cloudsync.sync.sync_manager.create_remote_backend", factory)
    return ["--config", str(config_path), "--credentials", str(tmp_path / "credentials.yaml")]


def invoke(*args):
    return CliRunner().invoke(cli, list(args), catch_exceptions=False)


def test_init_writes_sample_config(tmp_path):
    path = tmp_path / "new" / "config.yaml"

    result = invoke("init", "--config", str(path), "--local-root", str(tmp_path / "data"))

    assert result.exit_code == 0
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data["local_root"] == str(tmp_path / "data")
    assert {r["type"] for r in data["remotes"]} == {"aws_s3", "azure_blob"}
    SyncConfig.from_yaml(path)


def test_missing_config_exits_with_error(tmp_path):
    result = invoke("plan", "--config", str(tmp_path / "nope.yaml"))

    assert result.exit_code == 1
    assert "configuration file not found" in result.output


def test_plan_shows_pending_changes(setup, local_root):
    write_file(local_root / "a.txt", b"hello")

    result = invoke("plan", *setup)

    assert result.exit_code == 0
    assert "a.txt" in result.output
    assert "local → remote" in result.output


def test_sync_then_status(setup, local_root, remotes):
    write_file(local_root / "a.txt", b"hello")

    result = invoke("sync", *setup)

    assert result.exit_code == 0, result.output
    assert remotes["cloud"].files == {"a.txt": b"hello"}
    assert "completed" in result.output

    status = invoke("status", setup[0], setup[1])
    assert status.exit_code == 0
    assert "cloud" in status.output
    assert "never" not in status.output

    plan = invoke("plan", *setup)
    assert "up to date" in plan.output


def test_dry_run_changes_nothing(setup, local_root, remotes):
    write_file(local_root / "a.txt", b"hello")

    result = invoke("sync", *setup, "--dry-run")

    assert result.exit_code == 0
    assert "DRY RUN" in result.output
    assert remotes["cloud"].files == {}


def test_failed_sync_exits_non_zero(setup, local_root, remotes):
    write_file(local_root / "a.txt", b"hello")
    remotes["cloud"].failures[("write", "a.txt")] = OSError("denied")

    result = invoke("sync", *setup)

    assert result.exit_code == 1
    assert "failed" in result.output


def test_connection_test(setup, remotes):
    result = invoke("test", *setup)

    assert result.exit_code == 0
    assert "All connections successful" in result.output


def test_unknown_remote(setup):
    result = invoke("sync", *setup, "--remote", "elsewhere")

    assert result.exit_code == 1
    assert "elsewhere" in result.output


def test_reset_clears_the_last_sync(setup, local_root, remotes):
    write_file(local_root / "a.txt", b"hello")
    assert invoke("sync", *setup).exit_code == 0

    result = invoke("reset", setup[0], setup[1], "--remote", "cloud", "--yes")

    assert result.exit_code == 0, result.output
    assert "reset" in result.output
    status = invoke("status", setup[0], setup[1])
    assert "never" in status.output
    assert remotes["cloud"].files == {"a.txt": b"hello"}


def test_reset_asks_for_confirmation(setup, local_root):
    write_file(local_root / "a.txt", b"hello")
    invoke("sync", *setup)

    result = CliRunner().invoke(cli, ["reset", setup[0], setup[1], "--remote", "cloud"], input="n\n")

    assert result.exit_code == 0
    assert "never" not in invoke("status", setup[0], setup[1]).output


def test_reset_unknown_remote(setup):
    result = invoke("reset", setup[0], setup[1], "--remote", "elsewhere", "--yes")

    assert result.exit_code == 1
    assert "elsewhere" in result.output
