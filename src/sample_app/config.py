"""
Configuration for the sample service and its telemetry pipeline.

Values are resolved in this order (later wins):
1. dataclass defaults (see defaults.py)
2. optional YAML file (SAMPLE_APP_CONFIG env or --config), with `server:` and
   `telemetry:` sections
3. environment variables
4. CLI flags (applied by cli.py)

Exporter endpoint: when TelemetryConfig.endpoint is None the OTLP exporters are
built without an endpoint and read the standard OTEL_EXPORTER_OTLP_* variables
themselves.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .defaults import (
    DEFAULT_DEPLOYMENT_ENVIRONMENT,
    DEFAULT_HOST,
    DEFAULT_METRIC_EXPORT_INTERVAL_MS,
    DEFAULT_OTLP_PROTOCOL,
    DEFAULT_PORT,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SERVICE_VERSION,
    EXPORTER_KINDS,
    OTLP_PROTOCOLS,
    get_default_node_name,
)

CONFIG_ENV_VAR = "SAMPLE_APP_CONFIG"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class ConfigError(ValueError):
    """Raised for invalid configuration values or unreadable config files."""


@dataclass(frozen=True)
class TelemetryConfig:
    """Where and how telemetry is exported, and the resource it is tagged with."""

    endpoint: str | None = None
    insecure: bool = True
    service_name: str = DEFAULT_SERVICE_NAME
    service_version: str = DEFAULT_SERVICE_VERSION
    deployment_environment: str = DEFAULT_DEPLOYMENT_ENVIRONMENT
    node_name: str = field(default_factory=get_default_node_name)
    protocol: str = DEFAULT_OTLP_PROTOCOL
    exporter: str = "otlp"
    metric_export_interval_ms: int = DEFAULT_METRIC_EXPORT_INTERVAL_MS
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.protocol not in OTLP_PROTOCOLS:
            raise ConfigError(
                f"Unknown OTLP protocol {self.protocol!r}; expected one of {', '.join(OTLP_PROTOCOLS)}"
            )
        if self.exporter not in EXPORTER_KINDS:
            raise ConfigError(
                f"Unknown exporter {self.exporter!r}; expected one of {', '.join(EXPORTER_KINDS)}"
            )
        if self.metric_export_interval_ms <= 0:
            raise ConfigError("metric_export_interval_ms must be positive")
        if not self.service_name:
            raise ConfigError("service_name must not be empty")


@dataclass(frozen=True)
class ServerConfig:
    """HTTP listener settings."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def __post_init__(self):
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port out of range: {self.port}")


@dataclass(frozen=True)
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)


def load_yaml(path: Path, default: Any = None) -> Any:
    """Load YAML mapping from path; return default when the file is missing."""
    if default is None:
        default = {}
    if not path.exists():
        return default
    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    return data if isinstance(data, dict) else default


def parse_bool(value: str | bool, name: str = "value") -> bool:
    if isinstance(value, bool):
        return value
    v = str(value).strip().lower()
    if v in _TRUE_VALUES:
        return True
    if v in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def parse_int(value: str | int, name: str = "value") -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


# env var -> (section, field, parser)
_ENV_OVERRIDES: dict[str, tuple[str, str, Any]] = {
    "HOST": ("server", "host", str),
    "PORT": ("server", "port", parse_int),
    "OTEL_SERVICE_NAME": ("telemetry", "service_name", str),
    "OTEL_SERVICE_VERSION": ("telemetry", "service_version", str),
    "SAMPLE_APP_SERVICE_VERSION": ("telemetry", "service_version", str),
    "DEPLOYMENT_ENVIRONMENT": ("telemetry", "deployment_environment", str),
    "K8s_NODE_NAME": ("telemetry", "node_name", str),
    "K8S_NODE_NAME": ("telemetry", "node_name", str),
    "SAMPLE_APP_OTLP_ENDPOINT": ("telemetry", "endpoint", str),
    "SAMPLE_APP_OTLP_PROTOCOL": ("telemetry", "protocol", str),
    "SAMPLE_APP_OTLP_INSECURE": ("telemetry", "insecure", parse_bool),
    "SAMPLE_APP_METRIC_EXPORT_INTERVAL_MS": ("telemetry", "metric_export_interval_ms", parse_int),
    "SAMPLE_APP_EXPORTER": ("telemetry", "exporter", str),
}

_FIELD_PARSERS: dict[str, Any] = {
    "port": parse_int,
    "insecure": parse_bool,
    "metric_export_interval_ms": parse_int,
}


def _section_from_mapping(section: str, raw: Any, cls: type) -> dict[str, Any]:
    """Keep only known fields of a YAML section, coercing scalar types."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config section {section!r} must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown keys in {section!r}: {', '.join(unknown)}")
    values: dict[str, Any] = {}
    for key, value in raw.items():
        parser = _FIELD_PARSERS.get(key)
        if key == "headers":
            if not isinstance(value, dict):
                raise ConfigError("telemetry.headers must be a mapping")
            values[key] = {str(k): str(v) for k, v in value.items()}
        elif parser is not None and value is not None:
            values[key] = parser(value, f"{section}.{key}")
        else:
            values[key] = value
    return values


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Build AppConfig from defaults, an optional YAML file and the environment."""
    env = os.environ if environ is None else environ
    sections: dict[str, dict[str, Any]] = {"server": {}, "telemetry": {}}

    config_path = path or env.get(CONFIG_ENV_VAR) or None
    if config_path:
        p = Path(config_path)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {p}")
        data = load_yaml(p)
        sections["server"].update(_section_from_mapping("server", data.get("server"), ServerConfig))
        sections["telemetry"].update(
            _section_from_mapping("telemetry", data.get("telemetry"), TelemetryConfig)
        )

    for name, (section, key, parser) in _ENV_OVERRIDES.items():
        raw = env.get(name, "").strip()
        if raw:
            sections[section][key] = parser(raw, name) if parser is not str else raw

    return AppConfig(
        server=ServerConfig(**sections["server"]),
        telemetry=TelemetryConfig(**sections["telemetry"]),
    )


def with_overrides(config: AppConfig, **overrides: Any) -> AppConfig:
    """Return config with non-None overrides applied to whichever section owns each key."""
    server_keys = {f.name for f in fields(ServerConfig)}
    telemetry_keys = {f.name for f in fields(TelemetryConfig)}
    server_changes: dict[str, Any] = {}
    telemetry_changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key in server_keys:
            server_changes[key] = value
        elif key in telemetry_keys:
            telemetry_changes[key] = value
        else:
            raise ConfigError(f"Unknown config key: {key}")
    return AppConfig(
        server=replace(config.server, **server_changes),
        telemetry=replace(config.telemetry, **telemetry_changes),
    )
