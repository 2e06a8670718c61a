"""Tests for configuration loading."""

from pathlib import Path

import pytest

from sample_app.config import (
    AppConfig,
    ConfigError,
    TelemetryConfig,
    load_config,
    parse_bool,
    with_overrides,
)


def test_defaults_without_file_or_env() -> None:
    config = load_config(environ={})
    assert config.server.port == 8080
    assert config.server.host == "0.0.0.0"
    assert config.telemetry.service_name == "sample-app"
    assert config.telemetry.service_version == "1.0.0"
    assert config.telemetry.deployment_environment == "kubernetes"
    assert config.telemetry.endpoint is None
    assert config.telemetry.insecure is True
    assert config.telemetry.protocol == "http"
    assert config.telemetry.exporter == "otlp"
    assert config.telemetry.node_name


def test_environment_overrides() -> None:
    config = load_config(
        environ={
            "PORT": "9090",
            "OTEL_SERVICE_NAME": "demo",
            "K8s_NODE_NAME": "kind-control-plane",
            "SAMPLE_APP_OTLP_ENDPOINT": "http://localhost:4318",
            "SAMPLE_APP_OTLP_INSECURE": "false",
            "SAMPLE_APP_OTLP_PROTOCOL": "grpc",
        }
    )
    assert config.server.port == 9090
    assert config.telemetry.service_name == "demo"
    assert config.telemetry.node_name == "kind-control-plane"
    assert config.telemetry.endpoint == "http://localhost:4318"
    assert config.telemetry.insecure is False
    assert config.telemetry.protocol == "grpc"


def test_yaml_file_then_environment(tmp_path: Path) -> None:
    """Environment wins over the YAML file, which wins over defaults."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n"
        "  port: 7000\n"
        "telemetry:\n"
        "  service_name: from-file\n"
        "  deployment_environment: staging\n"
        "  headers:\n"
        "    x-team: observability\n",
        encoding="utf-8",
    )
    config = load_config(path, environ={"OTEL_SERVICE_NAME": "from-env"})
    assert config.server.port == 7000
    assert config.telemetry.deployment_environment == "staging"
    assert config.telemetry.service_name == "from-env"
    assert config.telemetry.headers == {"x-team": "observability"}


def test_config_path_from_environment(tmp_path: Path) -> None:
    path = tmp_path / "app.yaml"
    path.write_text("server:\n  port: 8181\n", encoding="utf-8")
    config = load_config(environ={"SAMPLE_APP_CONFIG": str(path)})
    assert config.server.port == 8181


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml", environ={})


def test_unknown_yaml_key(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("telemetry:\n  colour: blue\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="colour"):
        load_config(path, environ={})


def test_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("server: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path, environ={})


@pytest.mark.parametrize(
    "environ",
    [
        {"PORT": "eighty"},
        {"PORT": "70000"},
        {"SAMPLE_APP_OTLP_PROTOCOL": "udp"},
        {"SAMPLE_APP_EXPORTER": "kafka"},
        {"SAMPLE_APP_OTLP_INSECURE": "maybe"},
        {"SAMPLE_APP_METRIC_EXPORT_INTERVAL_MS": "0"},
    ],
)
def test_invalid_environment_values(environ: dict[str, str]) -> None:
    with pytest.raises(ConfigError):
        load_config(environ=environ)


def test_with_overrides_skips_none() -> None:
    base = AppConfig(telemetry=TelemetryConfig(node_name="n1"))
    config = with_overrides(base, port=9000, endpoint=None, exporter="console")
    assert config.server.port == 9000
    assert config.telemetry.endpoint is None
    assert config.telemetry.exporter == "console"
    assert config.telemetry.node_name == "n1"


def test_with_overrides_rejects_unknown_key() -> None:
    with pytest.raises(ConfigError):
        with_overrides(AppConfig(), colour="blue")


@pytest.mark.parametrize("raw,expected", [("yes", True), ("1", True), ("Off", False)])
def test_parse_bool(raw: str, expected: bool) -> None:
    assert parse_bool(raw) is expected


def test_example_config_file_loads() -> None:
    path = Path(__file__).resolve().parent.parent / "config.example.yaml"
    config = load_config(path, environ={})
    assert config.server.port == 8080
    assert config.telemetry.endpoint == "http://localhost:4318"
    assert config.telemetry.service_version == "1.0.0"
    assert config.telemetry.headers == {}


def test_service_version_from_otel_variable() -> None:
    """OTEL_SERVICE_VERSION is honoured; the app-specific variable wins when both are set."""
    config = load_config(environ={"OTEL_SERVICE_VERSION": "2.3.4"})
    assert config.telemetry.service_version == "2.3.4"

    config = load_config(
        environ={"OTEL_SERVICE_VERSION": "2.3.4", "SAMPLE_APP_SERVICE_VERSION": "9.9.9"}
    )
    assert config.telemetry.service_version == "9.9.9"
