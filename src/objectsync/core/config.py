"""
ObjectSync configuration management.

Provides centralized configuration with validation using Pydantic. The
configuration object is built once per invocation and passed down to the
components that need it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from objectsync.core.errors import ConfigError
from objectsync.core.models import Direction, JobSpec

DEFAULT_CONFIG_PATH = Path("config.yaml")

PLACEHOLDER_ENDPOINT = "http://192.168.1.100:7480"
PLACEHOLDER_ACCESS_KEY = "your-access-key"
PLACEHOLDER_SECRET_KEY = "your-secret-key"
PLACEHOLDER_BUCKET = "your-bucket-name"

DEFAULT_CONFIG_TEMPLATE = f"""\
# ObjectSync configuration
# Supports a single bucket (store.bucket) or a list of buckets.

# Object store connection
store:
  endpoint: "{PLACEHOLDER_ENDPOINT}"   # S3-compatible endpoint URL
  access_key: "{PLACEHOLDER_ACCESS_KEY}"
  secret_key: "{PLACEHOLDER_SECRET_KEY}"
  region: "us-east-1"
  force_path_style: true

# Single bucket mode
# bucket: "{PLACEHOLDER_BUCKET}"

# Multi bucket mode
buckets:
  - name: "documents"
    output_dir: "./backup/documents"
    state_file: ".state_documents.json"
  - name: "photos"
    output_dir: "./backup/photos"

# Defaults shared by every bucket
backup:
  output_dir: "./backup"
  incremental: true
  state_file: ".backup_state.json"
  workers: 5
  verbose: false

logging:
  level: "INFO"
  file_enabled: false
"""


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_enabled: bool = False
    console_enabled: bool = True
    json_format: bool = False
    log_directory: Path = Field(default_factory=lambda: Path.home() / ".objectsync" / "logs")

    @field_validator("log_directory", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()


class StoreConfig(BaseModel):
    """Connection settings for the S3-compatible object store."""

    endpoint: str = ""
    access_key: str = ""
    secret_key: str = ""
    region: str = "us-east-1"
    force_path_style: bool = True
    bucket: str = ""


class DefaultsConfig(BaseModel):
    """Defaults applied to every bucket that does not override them."""

    output_dir: Path = Path("./backup")
    incremental: bool = True
    state_file: Path = Path(".backup_state.json")
    upload_state_file: Path | None = None
    workers: int = Field(default=5, ge=1, le=256)
    verbose: bool = False


class BucketConfig(BaseModel):
    """Configuration for a single bucket job."""

    name: str
    output_dir: Path
    state_file: Path | None = None
    upload_state_file: Path | None = None
    workers: int | None = Field(default=None, ge=1, le=256)
    verbose: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("bucket name must not be empty")
        return v.strip()


class Overrides(BaseModel):
    """Command-line values that take precedence over the file."""

    endpoint: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    bucket: str | None = None
    output_dir: Path | None = None
    state_file: Path | None = None
    workers: int | None = Field(default=None, ge=1, le=256)
    incremental: bool | None = None
    verbose: bool | None = None


class ObjectSyncConfig(BaseModel):
    """Main ObjectSync configuration."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    backup: DefaultsConfig = Field(default_factory=DefaultsConfig)
    bucket: str = ""
    buckets: list[BucketConfig] = Field(default_factory=list)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> ObjectSyncConfig:
        """Load configuration from a YAML or JSON file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        if not config_path.exists():
            raise ConfigError(f"configuration file not found: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                if config_path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ConfigError(f"read configuration {config_path}: {exc}") from exc

        try:
            return cls.model_validate(data or {})
        except ValidationError as exc:
            raise ConfigError(f"invalid configuration {config_path}: {exc}") from exc

    @property
    def single_bucket(self) -> str:
        for name in (self.store.bucket, self.bucket):
            if name and name != PLACEHOLDER_BUCKET:
                return name
        return ""

    @property
    def is_multi_bucket(self) -> bool:
        return bool(self.buckets)

    def apply_overrides(self, overrides: Overrides) -> ObjectSyncConfig:
        """Return a copy with command-line values applied."""
        store = self.store.model_copy(
            update={
                key: value
                for key, value in {
                    "endpoint": overrides.endpoint,
                    "access_key": overrides.access_key,
                    "secret_key": overrides.secret_key,
                }.items()
                if value
            }
        )
        defaults = self.backup.model_copy(
            update={
                key: value
                for key, value in {
                    "output_dir": overrides.output_dir,
                    "state_file": overrides.state_file,
                    "upload_state_file": overrides.state_file,
                    "workers": overrides.workers,
                    "incremental": overrides.incremental,
                    "verbose": overrides.verbose,
                }.items()
                if value is not None
            }
        )
        update: dict[str, Any] = {"store": store, "backup": defaults}
        if overrides.bucket:
            # An explicit bucket on the command line selects single bucket mode.
            update["bucket"] = overrides.bucket
            update["buckets"] = []
            update["store"] = store.model_copy(update={"bucket": ""})
        return self.model_copy(update=update)

    def validate_ready(self) -> None:
        """Check that the configuration can drive a real run."""
        if not self.store.endpoint or self.store.endpoint == PLACEHOLDER_ENDPOINT:
            raise ConfigError("store.endpoint is not set")
        if not self.store.access_key or self.store.access_key == PLACEHOLDER_ACCESS_KEY:
            raise ConfigError("store.access_key is not set")
        if not self.store.secret_key or self.store.secret_key == PLACEHOLDER_SECRET_KEY:
            raise ConfigError("store.secret_key is not set")
        if not self.single_bucket and not self.is_multi_bucket:
            raise ConfigError("no bucket configured: set store.bucket or buckets")

    def job_specs(self, direction: Direction = Direction.DOWNLOAD) -> list[JobSpec]:
        """Build one job specification per configured bucket.

        Downloads and uploads of the same bucket keep separate state files.
        """
        defaults = self.backup
        upload = direction is Direction.UPLOAD
        if not self.is_multi_bucket:
            if not self.single_bucket:
                return []
            state_path = defaults.state_file
            if upload:
                state_path = defaults.upload_state_file or default_state_path(
                    self.single_bucket, direction
                )
            return [
                JobSpec(
                    remote_name=self.single_bucket,
                    local_dir=defaults.output_dir,
                    state_path=state_path,
                    worker_count=defaults.workers,
                    incremental=defaults.incremental,
                    verbose=defaults.verbose,
                    direction=direction,
                )
            ]

        specs = []
        for bucket in self.buckets:
            specs.append(
                JobSpec(
                    remote_name=bucket.name,
                    local_dir=bucket.output_dir,
                    state_path=(
                        (bucket.upload_state_file if upload else bucket.state_file)
                        or default_state_path(bucket.name, direction)
                    ),
                    worker_count=bucket.workers or defaults.workers,
                    incremental=defaults.incremental,
                    verbose=bucket.verbose or defaults.verbose,
                    direction=direction,
                )
            )
        return specs


def default_state_path(bucket_name: str, direction: Direction = Direction.DOWNLOAD) -> Path:
    """State file used when a bucket does not name one."""
    if direction is Direction.UPLOAD:
        return Path(f".upload_{bucket_name}_state.json")
    return Path(f".backup_state_{bucket_name}.json")


def write_default_config(config_path: Path, overwrite: bool = False) -> Path:
    """Write the commented configuration template."""
    if config_path.exists() and not overwrite:
        raise ConfigError(f"configuration file already exists: {config_path}")
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    return config_path


def load_config(config_path: Path | None = None, overrides: Overrides | None = None) -> ObjectSyncConfig:
    """Load configuration and apply command-line overrides."""
    config = ObjectSyncConfig.load(config_path)
    if overrides is not None:
        config = config.apply_overrides(overrides)
    return config
