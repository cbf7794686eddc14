"""Tests for configuration module."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from dynago.config import (
    DEFAULT_CONFIG_PATH,
    Config,
    ConfigValidationError,
    load_config,
    load_config_from_file,
    parse_args,
    parse_duration,
    validate_config_dict,
)

VALID_YAML = """
interval: 5m
ip_source: https://checkip.amazonaws.com/
log_level: debug
providers:
  cloudflare:
    enabled: true
    api_token: token
    zone_id: zone
    record_name: home.example.com
    record_type: A
    proxied: false
  route53:
    enabled: false
"""


@pytest.fixture
def write_config(tmp_path):
    """Write YAML content to a temporary config file."""

    def _write(content: str) -> Path:
        path = tmp_path / "dynago.yml"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


class TestParseDuration:
    """Tests for parse_duration function."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("5m", timedelta(minutes=5)),
            ("30s", timedelta(seconds=30)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("300ms", timedelta(milliseconds=300)),
            ("1.5h", timedelta(minutes=90)),
            ("2m30s", timedelta(seconds=150)),
            ("0", timedelta(0)),
            (" 10s ", timedelta(seconds=10)),
        ],
    )
    def test_valid_durations(self, value, expected):
        assert parse_duration(value) == expected

    def test_negative_duration(self):
        assert parse_duration("-1m") == timedelta(minutes=-1)

    @pytest.mark.parametrize("value", ["", "5", "abc", "5 m", "5x", "m5", "-"])
    def test_invalid_durations(self, value):
        with pytest.raises(ValueError, match="invalid duration"):
            parse_duration(value)

    def test_overflowing_duration(self):
        with pytest.raises(ValueError, match="invalid duration"):
            parse_duration("99999999999h")


class TestConfig:
    """Tests for Config model."""

    def test_defaults(self):
        config = Config(interval="1m", ip_source="http://ip.example")
        assert config.interval == timedelta(minutes=1)
        assert config.log_level == "info"
        assert config.providers == {}

    def test_numeric_interval_is_seconds(self):
        config = Config(interval=90, ip_source="http://ip.example")
        assert config.interval == timedelta(seconds=90)

    def test_null_providers_are_empty(self):
        config = Config.model_validate(
            {
                "interval": "1m",
                "ip_source": "http://ip.example",
                "providers": {"cloudflare": None},
            },
        )
        assert config.providers == {"cloudflare": {}}

    def test_config_is_frozen(self):
        config = Config(interval="1m", ip_source="http://ip.example")
        with pytest.raises(ValueError, match="frozen"):
            config.ip_source = "http://other.example"


class TestConfigValidation:
    """Tests for configuration validation."""

    def test_valid_config(self):
        config = validate_config_dict(
            {"interval": "10s", "ip_source": "http://ip.example"},
        )
        assert config.interval == timedelta(seconds=10)

    def test_missing_interval(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config_dict({"ip_source": "http://ip.example"})
        assert "[interval]: Field required" in str(exc_info.value)

    def test_unparsable_interval(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config_dict(
                {"interval": "soon", "ip_source": "http://ip.example"},
                Path("dynago.yml"),
            )
        error_msg = str(exc_info.value)
        assert "interval" in error_msg
        assert "soon" in error_msg
        assert "dynago.yml" in error_msg

    @pytest.mark.parametrize("value", ["0", "0s", "-5m", 0])
    def test_non_positive_interval(self, value):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config_dict({"interval": value, "ip_source": "http://ip.example"})
        assert "interval must be positive" in str(exc_info.value)

    def test_empty_ip_source(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config_dict({"interval": "1m", "ip_source": ""})
        assert "ip_source" in str(exc_info.value)

    @pytest.mark.parametrize(
        "value",
        ["http://[::1", "checkip.amazonaws.com", "ftp://ip.example/", "http://"],
    )
    def test_invalid_ip_source_url(self, value):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config_dict({"interval": "1m", "ip_source": value})
        assert "[ip_source]" in str(exc_info.value)

    def test_overflowing_interval(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config_dict(
                {"interval": "99999999999h", "ip_source": "http://ip.example"},
            )
        assert "invalid duration" in str(exc_info.value)

    def test_invalid_providers_type(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config_dict(
                {
                    "interval": "1m",
                    "ip_source": "http://ip.example",
                    "providers": ["cloudflare"],
                },
            )
        assert "providers" in str(exc_info.value)


class TestLoadConfigFromFile:
    """Tests for load_config_from_file function."""

    def test_load_yaml_file(self, write_config):
        data = load_config_from_file(write_config(VALID_YAML))
        assert data["interval"] == "5m"
        assert data["providers"]["cloudflare"]["api_token"] == "token"
        assert data["providers"]["route53"]["enabled"] is False

    def test_empty_file(self, write_config):
        assert load_config_from_file(write_config("")) == {}

    def test_non_mapping_document(self, write_config):
        with pytest.raises(ConfigValidationError, match="expected a mapping"):
            load_config_from_file(write_config("- a\n- b\n"))


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_valid_file(self, write_config):
        config = load_config(write_config(VALID_YAML))
        assert config.interval == timedelta(minutes=5)
        assert config.ip_source == "https://checkip.amazonaws.com/"
        assert config.log_level == "debug"
        assert config.providers["cloudflare"]["enabled"] is True

    def test_log_level_override(self, write_config):
        config = load_config(write_config(VALID_YAML), log_level="error")
        assert config.log_level == "error"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="not found"):
            load_config(tmp_path / "missing.yml")

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigValidationError, match="Failed to parse"):
            load_config(write_config("interval: [5m\n"))

    def test_invalid_interval_in_file(self, write_config):
        path = write_config("interval: often\nip_source: http://ip.example\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)
        assert exc_info.value.config_path == path


class TestParseArgs:
    """Tests for parse_args function."""

    def test_default_args(self):
        args = parse_args([])
        assert args.config == DEFAULT_CONFIG_PATH
        assert args.log_file is None
        assert args.log_level is None

    def test_single_dash_flags(self):
        args = parse_args(["-config", "/etc/dynago/dynago.yml", "-log", "/tmp/dynago.log"])
        assert args.config == Path("/etc/dynago/dynago.yml")
        assert args.log_file == Path("/tmp/dynago.log")

    def test_double_dash_flags(self):
        args = parse_args(["--config", "other.yml", "--log", "out.log"])
        assert args.config == Path("other.yml")
        assert args.log_file == Path("out.log")

    def test_log_level(self):
        args = parse_args(["--log-level", "DEBUG"])
        assert args.log_level == "debug"

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            parse_args(["--log-level", "verbose"])
