"""Replay service configuration model."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DatasetConfig(BaseModel):
    """Where the recorded dataset lives and how it is replayed."""

    # Local file (.csv / .xlsx)
    path: str | None = None

    # Object storage
    bucket: str | None = None
    key: str | None = None
    region: str | None = None
    auth_mode: Literal["instance_principal", "api_key"] = "instance_principal"
    oci_config_file: str | None = None
    oci_profile: str = "DEFAULT"

    # None picks the source default (utf-8 for files, euc-kr for objects)
    encoding: str | None = None
    loop: bool = True

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_location(self) -> DatasetConfig:
        has_object = self.bucket is not None or self.key is not None
        if self.path is not None and has_object:
            raise ValueError("dataset.path and dataset.bucket/key are mutually exclusive")
        if self.path is None and not has_object:
            raise ValueError("either dataset.path or dataset.bucket + dataset.key is required")
        if has_object and (not self.bucket or not self.key):
            raise ValueError("object storage datasets need both bucket and key")
        if self.auth_mode == "api_key" and has_object and self.oci_config_file is None:
            raise ValueError("oci_config_file is required for api_key auth")
        return self

    @property
    def uses_object_storage(self) -> bool:
        return self.bucket is not None


class ScheduleConfig(BaseModel):
    batch_size: int = Field(default=10, gt=0)
    interval_seconds: float = Field(default=1.0, gt=0)
    start_enabled: bool = False

    model_config = ConfigDict(extra="forbid")


class SinkConfig(BaseModel):
    kind: Literal["http", "file", "log", "none"] = "http"
    base_url: str | None = None
    timeout_seconds: float = Field(default=5.0, gt=0)
    max_pending: int = Field(default=100, gt=0)
    path: str | None = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_target(self) -> SinkConfig:
        if self.kind == "http" and not self.base_url:
            raise ValueError("sink.base_url is required for the http sink")
        if self.kind == "file" and not self.path:
            raise ValueError("sink.path is required for the file sink")
        return self


class StreamConfig(BaseModel):
    """Per-connection push stream settings."""

    lifetime_seconds: float = Field(default=30 * 60, gt=0)
    max_pending_events: int = Field(default=1000, gt=0)
    poll_seconds: float = Field(default=1.0, gt=0)

    model_config = ConfigDict(extra="forbid")


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8080, gt=0, lt=65536)

    model_config = ConfigDict(extra="forbid")


class ReplayConfig(BaseModel):
    """Structured replay service configuration."""

    dataset: DatasetConfig
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    sink: SinkConfig = Field(default_factory=lambda: SinkConfig(kind="log"))
    stream: StreamConfig = Field(default_factory=StreamConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> ReplayConfig:
        """Create a ReplayConfig from a JSON-compatible object."""
        return cls.model_validate(obj)

    @classmethod
    def from_file(cls, path: str | Path) -> ReplayConfig:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(config_path)
        return cls.from_json_obj(json.loads(config_path.read_text(encoding="utf-8")))
