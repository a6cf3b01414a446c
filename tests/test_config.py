"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml

from cloudsync.config.settings import CredentialsConfig, RemoteConfig, RemoteType, SyncConfig
from cloudsync.errors import ConfigurationError
from cloudsync.sync.models import FailurePolicy


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_load_full_configuration(tmp_path):
    path = write_yaml(tmp_path / "config.yaml", {
        "local_root": str(tmp_path / "data"),
        "remotes": [
            {"type": "aws_s3", "name": "s3", "bucket": "b", "prefix": "/team/"},
            {"type": "azure_blob", "name": "az", "account": "acct", "container": "c", "enabled": False},
            {"type": "gcp_storage", "name": "gcs", "bucket": "g"},
        ],
        "sync_options": {"retry_attempts": 5, "failure_policy": "continue", "ignore": ["*.tmp"]},
    })

    config = SyncConfig.from_yaml(path)

    assert config.local_root == tmp_path / "data"
    assert [r.type for r in config.remotes] == [RemoteType.AWS_S3, RemoteType.AZURE_BLOB, RemoteType.GCP_STORAGE]
    assert config.sync_options.retry_attempts == 5
    assert config.sync_options.failure_policy == FailurePolicy.CONTINUE
    assert [r.name for r in config.get_enabled_remotes()] == ["s3", "gcs"]
    assert config.get_remote_by_name("az").container == "c"
    assert config.get_remote_by_name("missing") is None


def test_defaults(tmp_path):
    config = SyncConfig(local_root=tmp_path, remotes=[])

    assert config.sync_options.failure_policy == FailurePolicy.ABORT
    assert config.sync_options.retry_attempts == 3
    assert config.state_path == tmp_path / ".cloudsync"


def test_absolute_state_dir(tmp_path):
    config = SyncConfig(local_root=tmp_path, remotes=[], sync_options={"state_dir": str(tmp_path / "state")})
    assert config.state_path == tmp_path / "state"


def test_local_root_expands_user(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    config = SyncConfig(local_root="~/sync", remotes=[])
    assert config.local_root == tmp_path / "sync"


def test_locations():
    assert RemoteConfig(type="aws_s3", name="a", bucket="b", prefix="/x/").location == "s3://b/x"
    assert RemoteConfig(type="gcp_storage", name="g", bucket="b").location == "gs://b"
    assert RemoteConfig(type="azure_blob", name="z", account="acct", container="c").location == "azure://acct/c"


@pytest.mark.parametrize("remote", [
    {"type": "aws_s3", "name": "no-bucket"},
    {"type": "gcp_storage", "name": "no-bucket"},
    {"type": "azure_blob", "name": "no-account", "container": "c"},
    {"type": "azure_blob", "name": "no-container", "account": "a"},
    {"type": "dropbox", "name": "unknown", "bucket": "b"},
])
def test_invalid_remote_is_rejected(tmp_path, remote):
    path = write_yaml(tmp_path / "config.yaml", {"local_root": str(tmp_path), "remotes": [remote]})

    with pytest.raises(ConfigurationError):
        SyncConfig.from_yaml(path)


def test_duplicate_remote_names_are_rejected(tmp_path):
    path = write_yaml(tmp_path / "config.yaml", {
        "local_root": str(tmp_path),
        "remotes": [
            {"type": "aws_s3", "name": "same", "bucket": "a"},
            {"type": "aws_s3", "name": "same", "bucket": "b"},
        ],
    })

    with pytest.raises(ConfigurationError) as excinfo:
        SyncConfig.from_yaml(path)
    assert "same" in str(excinfo.value)


def test_retry_attempts_must_be_positive(tmp_path):
    path = write_yaml(tmp_path / "config.yaml", {
        "local_root": str(tmp_path),
        "remotes": [],
        "sync_options": {"retry_attempts": 0},
    })

    with pytest.raises(ConfigurationError):
        SyncConfig.from_yaml(path)


def test_missing_file_and_bad_yaml(tmp_path):
    with pytest.raises(ConfigurationError):
        SyncConfig.from_yaml(tmp_path / "nope.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("remotes: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        SyncConfig.from_yaml(bad)


def test_yaml_round_trip(tmp_path):
    config = SyncConfig(
        local_root=tmp_path,
        remotes=[{"type": "aws_s3", "name": "s3", "bucket": "b"}],
        sync_options={"failure_policy": "continue"},
    )
    path = tmp_path / "out" / "config.yaml"
    config.to_yaml(path)

    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert raw["remotes"][0]["type"] == "aws_s3"
    assert raw["sync_options"]["failure_policy"] == "continue"
    assert SyncConfig.from_yaml(path) == config


class TestCredentials:
    def test_missing_file_gives_empty_credentials(self, tmp_path):
        assert CredentialsConfig.from_yaml(tmp_path / "none.yaml") == CredentialsConfig()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIA")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")
        monkeypatch.delenv("AZURE_STORAGE_CONNECTION_STRING", raising=False)

        creds = CredentialsConfig.from_env()

        assert creds.aws_access_key_id == "AKIA"
        assert creds.aws_secret_access_key == "secret"
        assert creds.azure_storage_connection_string is None

    def test_file_values_win_over_environment(self, tmp_path):
        path = write_yaml(tmp_path / "credentials.yaml", {"aws_access_key_id": "from-file"})
        env = CredentialsConfig(aws_access_key_id="from-env", aws_secret_access_key="env-secret")

        merged = CredentialsConfig.from_yaml(path).merged_with(env)

        assert merged.aws_access_key_id == "from-file"
        assert merged.aws_secret_access_key == "env-secret"
