"""
Tests for objectsync.core.config module.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from objectsync.core.config import (
    BucketConfig,
    DefaultsConfig,
    LoggingConfig,
    ObjectSyncConfig,
    Overrides,
    default_state_path,
    load_config,
    write_default_config,
)
from objectsync.core.errors import ConfigError
from objectsync.core.models import Direction

MULTI_BUCKET_YAML = """\
store:
  endpoint: "http://ceph.local:7480"
  access_key: "AK"
  secret_key: "SK"
buckets:
  - name: "documents"
    output_dir: "./backup/documents"
    state_file: ".state_documents.json"
  - name: "photos"
    output_dir: "./backup/photos"
    workers: 2
    verbose: true
backup:
  incremental: true
  workers: 8
"""


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_default_values(self) -> None:
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.file_enabled is False
        assert config.console_enabled is True
        assert config.json_format is False

    def test_path_expansion(self) -> None:
        config = LoggingConfig(log_directory="~/logs")
        assert "~" not in str(config.log_directory)


class TestDefaultsConfig:
    """Tests for DefaultsConfig."""

    def test_default_values(self) -> None:
        config = DefaultsConfig()
        assert config.workers == 5
        assert config.incremental is True
        assert config.verbose is False
        assert config.state_file == Path(".backup_state.json")

    def test_workers_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            DefaultsConfig(workers=0)


class TestBucketConfig:
    """Tests for BucketConfig."""

    def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BucketConfig(name="  ", output_dir="out")


class TestObjectSyncConfig:
    """Tests for ObjectSyncConfig."""

    def test_load_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text(MULTI_BUCKET_YAML)

        config = ObjectSyncConfig.load(path)

        assert config.store.endpoint == "http://ceph.local:7480"
        assert config.is_multi_bucket is True
        assert [b.name for b in config.buckets] == ["documents", "photos"]

    def test_load_json(self, temp_dir: Path) -> None:
        path = temp_dir / "config.json"
        path.write_text(json.dumps({"store": {"endpoint": "http://x", "bucket": "one"}}))

        config = ObjectSyncConfig.load(path)
        assert config.single_bucket == "one"

    def test_load_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigError):
            ObjectSyncConfig.load(temp_dir / "nope.yaml")

    def test_load_invalid_values(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text("backup:\n  workers: -1\n")
        with pytest.raises(ConfigError):
            ObjectSyncConfig.load(path)

    def test_load_malformed_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text("store: [unclosed\n")
        with pytest.raises(ConfigError):
            ObjectSyncConfig.load(path)

    def test_job_specs_fill_defaults(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text(MULTI_BUCKET_YAML)

        specs = ObjectSyncConfig.load(path).job_specs(Direction.UPLOAD)

        documents, photos = specs
        assert documents.state_path == Path(".upload_documents_state.json")
        assert documents.worker_count == 8
        assert documents.verbose is False
        assert documents.direction is Direction.UPLOAD
        assert photos.state_path == default_state_path("photos", Direction.UPLOAD)
        assert photos.worker_count == 2
        assert photos.verbose is True

    def test_single_bucket_spec(self) -> None:
        config = ObjectSyncConfig(store={"endpoint": "http://x", "bucket": "solo"})
        (spec,) = config.job_specs()
        assert spec.remote_name == "solo"
        assert spec.local_dir == Path("./backup")
        assert spec.state_path == Path(".backup_state.json")

    def test_upload_state_separate_from_download(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text(MULTI_BUCKET_YAML)
        config = ObjectSyncConfig.load(path)

        downloads = [spec.state_path for spec in config.job_specs(Direction.DOWNLOAD)]
        uploads = [spec.state_path for spec in config.job_specs(Direction.UPLOAD)]

        assert downloads == [Path(".state_documents.json"), Path(".backup_state_photos.json")]
        assert uploads == [Path(".upload_documents_state.json"), Path(".upload_photos_state.json")]

    def test_single_bucket_upload_state(self) -> None:
        config = ObjectSyncConfig(store={"endpoint": "http://x", "bucket": "solo"})
        (spec,) = config.job_specs(Direction.UPLOAD)
        assert spec.state_path == Path(".upload_solo_state.json")

    def test_bucket_upload_state_file(self) -> None:
        config = ObjectSyncConfig(
            buckets=[{"name": "docs", "output_dir": "out", "upload_state_file": "up.json"}]
        )
        (spec,) = config.job_specs(Direction.UPLOAD)
        assert spec.state_path == Path("up.json")

    def test_top_level_bucket_is_single_mode(self) -> None:
        config = ObjectSyncConfig(bucket="legacy")
        assert config.single_bucket == "legacy"

    def test_placeholder_bucket_ignored(self) -> None:
        config = ObjectSyncConfig(bucket="your-bucket-name")
        assert config.single_bucket == ""
        assert config.job_specs() == []

    def test_validate_ready_rejects_placeholders(self, temp_dir: Path) -> None:
        path = write_default_config(temp_dir / "config.yaml")
        config = ObjectSyncConfig.load(path)
        with pytest.raises(ConfigError, match="endpoint"):
            config.validate_ready()

    def test_validate_ready_requires_bucket(self) -> None:
        config = ObjectSyncConfig(
            store={"endpoint": "http://x", "access_key": "a", "secret_key": "s"}
        )
        with pytest.raises(ConfigError, match="bucket"):
            config.validate_ready()

    def test_validate_ready_ok(self) -> None:
        config = ObjectSyncConfig(
            store={"endpoint": "http://x", "access_key": "a", "secret_key": "s", "bucket": "b"}
        )
        config.validate_ready()


class TestOverrides:
    """Tests for command-line overrides."""

    def test_overrides_do_not_mutate_original(self) -> None:
        config = ObjectSyncConfig(store={"endpoint": "http://x", "bucket": "b"})
        updated = config.apply_overrides(Overrides(workers=9, incremental=False))

        assert updated.backup.workers == 9
        assert updated.backup.incremental is False
        assert config.backup.workers == 5
        assert config.backup.incremental is True

    def test_bucket_override_selects_single_mode(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text(MULTI_BUCKET_YAML)

        config = load_config(path, Overrides(bucket="adhoc", output_dir=temp_dir / "adhoc"))

        (spec,) = config.job_specs()
        assert spec.remote_name == "adhoc"
        assert spec.local_dir == temp_dir / "adhoc"
        assert config.store.endpoint == "http://ceph.local:7480"

    def test_state_file_override_applies_to_both_directions(self) -> None:
        config = ObjectSyncConfig().apply_overrides(
            Overrides(bucket="adhoc", state_file=Path("run.json"))
        )
        (download,) = config.job_specs(Direction.DOWNLOAD)
        (upload,) = config.job_specs(Direction.UPLOAD)
        assert download.state_path == Path("run.json")
        assert upload.state_path == Path("run.json")

    def test_credentials_override(self) -> None:
        config = ObjectSyncConfig().apply_overrides(
            Overrides(endpoint="http://e", access_key="a", secret_key="s")
        )
        assert config.store.endpoint == "http://e"
        assert config.store.access_key == "a"
        assert config.store.secret_key == "s"


class TestDefaultTemplate:
    """Tests for the configuration template."""

    def test_template_is_loadable(self, temp_dir: Path) -> None:
        path = write_default_config(temp_dir / "sub" / "config.yaml")
        config = ObjectSyncConfig.load(path)
        assert len(config.buckets) == 2

    def test_refuses_overwrite(self, temp_dir: Path) -> None:
        path = write_default_config(temp_dir / "config.yaml")
        with pytest.raises(ConfigError):
            write_default_config(path)
        write_default_config(path, overwrite=True)
