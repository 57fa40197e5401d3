from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from emitter.core.message import DEFAULT_TOPIC_PREFIX

DEFAULT_LINGER_MS = 2000
DEFAULT_JOIN_TIMEOUT_MS = 3000
DEFAULT_SETTLE_MS = 0


class ConfigError(ValueError):
    """Configuration is missing a required value or holds an invalid one."""


@dataclass(frozen=True)
class ConnectionConfig:
    endpoint: str
    linger_ms: int = DEFAULT_LINGER_MS
    join_timeout_ms: int = DEFAULT_JOIN_TIMEOUT_MS
    settle_ms: int = DEFAULT_SETTLE_MS


@dataclass(frozen=True)
class PipelineConfig:
    """Read-only snapshot of the emitter settings for one invocation."""
    endpoint: str
    environment_shortname: str
    topic_prefix: str = DEFAULT_TOPIC_PREFIX
    should_sign: bool = False
    certificate_file: str | None = None
    keystore_file: str | None = None
    linger_ms: int = DEFAULT_LINGER_MS
    join_timeout_ms: int = DEFAULT_JOIN_TIMEOUT_MS
    settle_ms: int = DEFAULT_SETTLE_MS

    @staticmethod
    def from_file(path: str) -> "PipelineConfig":
        return PipelineConfig.from_mapping(read_config_file(path))

    @staticmethod
    def from_mapping(data: dict[str, Any]) -> "PipelineConfig":
        return PipelineConfig(
            endpoint=_required(data, "endpoint"),
            environment_shortname=_required(data, "environment_shortname"),
            topic_prefix=str(data.get("topic_prefix") or DEFAULT_TOPIC_PREFIX),
            should_sign=_as_bool(data.get("should_sign", False)),
            certificate_file=data.get("certificate_file") or None,
            keystore_file=data.get("keystore_file") or None,
            linger_ms=_as_millis(data, "linger_ms", DEFAULT_LINGER_MS),
            join_timeout_ms=_as_millis(data, "join_timeout_ms", DEFAULT_JOIN_TIMEOUT_MS),
            settle_ms=_as_millis(data, "settle_ms", DEFAULT_SETTLE_MS),
        )

    def connection(self) -> ConnectionConfig:
        return ConnectionConfig(
            endpoint=self.endpoint,
            linger_ms=self.linger_ms,
            join_timeout_ms=self.join_timeout_ms,
            settle_ms=self.settle_ms,
        )

    def snapshot(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "environment_shortname": self.environment_shortname,
            "topic_prefix": self.topic_prefix,
            "should_sign": self.should_sign,
            "certificate_file": self.certificate_file,
            "keystore_file": self.keystore_file,
            "linger_ms": self.linger_ms,
            "join_timeout_ms": self.join_timeout_ms,
            "settle_ms": self.settle_ms,
        }


def _required(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None or not str(value).strip():
        raise ConfigError(f"Missing required setting: {key}")
    return str(value).strip()


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def _as_millis(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    try:
        millis = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc
    if millis < 0:
        raise ConfigError(f"{key} must not be negative, got {millis}")
    return millis


def read_config_file(path: str) -> dict[str, Any]:
    """Load a raw settings mapping from a YAML or JSON file."""
    ext = Path(path).suffix.lower()
    with open(path, "r", encoding="utf-8") as handle:
        if ext in {".yaml", ".yml"}:
            data = yaml.safe_load(handle)
        elif ext == ".json":
            data = json.load(handle)
        else:
            raise ValueError(f"Unsupported config file extension: {ext}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data
