"""
Configuration management for dynago.

This module handles loading and validating the YAML configuration file
and parsing command-line arguments. The log level may be overridden on the
command line; everything else comes from the configuration file.
"""

from __future__ import annotations

import argparse
import logging
import re
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dynago import __version__
from dynago.logging_config import DATE_FORMAT, LOG_FORMAT

if TYPE_CHECKING:
    from typing import Final

# Configure basic logging for early startup messages.
# This ensures log messages during config loading (before "setup_logging()" is called)
# are visible with proper formatting. "setup_logging()" configures the "dynago"
# logger with full settings later.
logger_basic = logging.getLogger(__name__)
logger_basic.setLevel(logging.DEBUG)
handler = logging.StreamHandler()
formatter = logging.Formatter(
    fmt=LOG_FORMAT,
    datefmt=DATE_FORMAT,
)
handler.setFormatter(formatter)
logger_basic.addHandler(handler)
logger_basic.propagate = False


DEFAULT_CONFIG_PATH: Final[Path] = Path("configs/dynago.yml")

# Duration units in seconds (Go "time.ParseDuration" compatible)
_DURATION_UNITS: Final[dict[str, float]] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # noqa: RUF001
    "μs": 1e-6,  # noqa: RUF001
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART: Final[re.Pattern[str]] = re.compile(
    r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)",  # noqa: RUF001
)


class ConfigValidationError(Exception):
    """
    Exception raised when configuration loading or validation fails.

    Attributes
    ----------
    message : str
        Human-readable error message describing the validation failures.
    config_path : Path | None
        Path to the configuration file that failed validation.
    """

    def __init__(self, message: str, config_path: Path | None = None) -> None:
        """
        Initialize ConfigValidationError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        config_path : Path | None, optional
            Path to the configuration file.
        """
        self.message = message
        self.config_path = config_path
        super().__init__(message)


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration string such as "300ms", "5m" or "1h30m".

    Parameters
    ----------
    value : str
        Signed sequence of decimal numbers, each with a unit suffix
        (ns, us, ms, s, m, h). "0" is accepted without a unit.

    Returns
    -------
    timedelta
        The parsed duration.

    Raises
    ------
    ValueError
        If the string is not a valid duration.
    """
    text = value.strip()
    original = text

    sign = 1.0
    if text[:1] in {"+", "-"}:
        if text[0] == "-":
            sign = -1.0
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        msg = f'invalid duration "{original}"'
        raise ValueError(msg)

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            msg = f'invalid duration "{original}"'
            raise ValueError(msg)
        number, unit = match.groups()
        total += float(number) * _DURATION_UNITS[unit]
        pos = match.end()

    try:
        return timedelta(seconds=sign * total)
    except OverflowError as e:
        msg = f'invalid duration "{original}"'
        raise ValueError(msg) from e


# Configuration models (Pydantic with type validation and coercion)


class Config(BaseModel):
    """
    Application configuration.

    Attributes
    ----------
    interval : timedelta
        Time between update passes.
    ip_source : str
        URL returning the current public IP as plain text.
    log_level : str
        Log level (debug, info, warn, error).
    providers : dict[str, dict[str, Any]]
        Provider name to provider-specific settings.
    """

    model_config = ConfigDict(frozen=True)

    interval: timedelta
    ip_source: str = Field(..., min_length=1)
    log_level: str = "info"
    providers: dict[str, dict[str, Any]] = {}

    @field_validator("interval", mode="before")
    @classmethod
    def parse_interval(cls, value: Any) -> Any:
        """
        Accept Go-style duration strings for the interval.

        Numbers are passed through and interpreted as seconds.

        Raises
        ------
        ValueError
            If the string is not a valid duration.
        """
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("interval")
    @classmethod
    def check_interval_positive(cls, value: timedelta) -> timedelta:
        """
        Validate that the interval is strictly positive.

        Raises
        ------
        ValueError
            If the interval is zero or negative.
        """
        if value <= timedelta(0):
            msg = "interval must be positive"
            raise ValueError(msg)
        return value

    @field_validator("ip_source")
    @classmethod
    def check_ip_source_url(cls, value: str) -> str:
        """
        Validate that the IP source is an absolute http(s) URL.

        Raises
        ------
        ValueError
            If the URL cannot be parsed or has no http(s) scheme and host.
        """
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            msg = f"ip_source is not a valid URL: {e}"
            raise ValueError(msg) from e
        if url.scheme not in {"http", "https"} or not url.host:
            msg = "ip_source must be an http:// or https:// URL"
            raise ValueError(msg)
        return value

    @field_validator("providers", mode="before")
    @classmethod
    def normalize_providers(cls, value: Any) -> Any:
        """
        Treat a null provider section, or a null provider entry, as empty.
        """
        if value is None:
            return {}
        if isinstance(value, dict):
            return {k: ({} if v is None else v) for k, v in value.items()}
        return value


def format_validation_errors(
    error: ValidationError,
    config_path: Path | None,
    prefix: str | None = None,
) -> str:
    """
    Format Pydantic validation errors into human-readable messages.

    Parameters
    ----------
    error : ValidationError
        Pydantic validation error.
    config_path : Path | None
        Path to the configuration file.
    prefix : str | None, optional
        Field path prefix (e.g. "providers.cloudflare").

    Returns
    -------
    str
        Human-readable error message.
    """
    lines: list[str] = []

    if config_path:
        lines.append(f'Configuration error in "{config_path}":')
    else:
        lines.append("Configuration error:")

    for err in error.errors():
        # Build field path (e.g., "providers.route53.region")
        locs = [str(loc) for loc in err["loc"]]
        if prefix:
            locs.insert(0, prefix)
        field_path = ".".join(locs) or "(root)"

        error_type = err["type"]
        error_input = err["input"]
        input_type = type(error_input).__name__

        value_repr = (
            f'"{error_input}"' if isinstance(error_input, str) else repr(error_input)
        )

        if error_type == "missing":
            lines.append(f"  [{field_path}]: Field required.")
        elif error_type == "provider_config_error":
            # The input is the whole provider section, credentials included
            lines.append(f"  [{field_path}]: {err['msg']}.")
        elif error_type == "value_error":
            lines.append(f"  [{field_path}]: {err['msg']} (value: {value_repr}).")
        else:
            expected_type = _get_expected_type(error_type)
            lines.append(
                f"  [{field_path}]: Expected {expected_type}, got {input_type} (value: {value_repr}). {err['msg']}.",
            )

    return "\n".join(lines)


def _get_expected_type(error_type: str) -> str:
    """
    Get human-readable expected type from Pydantic error type.

    Parameters
    ----------
    error_type : str
        Pydantic error type string.

    Returns
    -------
    str
        Human-readable type name.
    """
    type_mapping = {
        "int_type": "int",
        "int_parsing": "int",
        "bool_type": "bool",
        "bool_parsing": "bool",
        "string_type": "str",
        "string_too_short": "non-empty str",
        "dict_type": "mapping",
        "enum": "one of the allowed values",
        "time_delta_type": "duration",
        "time_delta_parsing": "duration",
    }
    return type_mapping.get(error_type, error_type)


def validate_config_dict(
    data: dict[str, Any],
    config_path: Path | None = None,
) -> Config:
    """
    Validate configuration dictionary using Pydantic.

    Parameters
    ----------
    data : dict[str, Any]
        Configuration dictionary to validate.
    config_path : Path | None, optional
        Path to the configuration file (for error messages).

    Returns
    -------
    Config
        The validated configuration.

    Raises
    ------
    ConfigValidationError
        If validation fails.
    """
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        msg = format_validation_errors(e, config_path)
        raise ConfigValidationError(msg, config_path) from e


def load_config_from_file(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Parameters
    ----------
    config_path : Path
        Path to the configuration file.

    Returns
    -------
    dict[str, Any]
        Parsed configuration dictionary (empty for an empty document).

    Raises
    ------
    OSError
        If the configuration file cannot be read.
    yaml.YAMLError
        If the configuration file is not valid YAML.
    ConfigValidationError
        If the document is not a mapping.
    """
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = (
            f'Configuration error in "{config_path}": '
            f"expected a mapping at the top level, got {type(data).__name__}."
        )
        raise ConfigValidationError(msg, config_path)
    return data


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Both the single-dash ("-config") and double-dash ("--config") spellings
    are accepted.

    Parameters
    ----------
    args : list[str] | None, optional
        Command-line arguments. If None, uses sys.argv.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog="dynago",
        description="dynago - A dynamic DNS updater for CloudFlare and AWS Route53",
    )

    parser.add_argument(
        "--config",
        "-config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log",
        "-log",
        type=Path,
        dest="log_file",
        default=None,
        help="Path to the log file (optional, console logging is always enabled)",
    )
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=["debug", "info", "warn", "warning", "error"],
        default=None,
        help="Log level (overrides the configuration file)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(args)


def load_config(
    config_path: Path = DEFAULT_CONFIG_PATH,
    log_level: str | None = None,
) -> Config:
    """
    Load configuration from a YAML file.

    Parameters
    ----------
    config_path : Path, optional
        Path to the configuration file.
    log_level : str | None, optional
        Log level override from the command line.

    Returns
    -------
    Config
        Loaded configuration.

    Raises
    ------
    ConfigValidationError
        If the file is missing, unreadable, not valid YAML, or invalid.
    """
    config_path = config_path.expanduser()

    if not config_path.exists():
        msg = f'Configuration file not found: "{config_path}".'
        raise ConfigValidationError(msg, config_path)

    logger_basic.info('Loading configuration from "%s".', config_path)
    try:
        config_dict = load_config_from_file(config_path)
    except yaml.YAMLError as e:
        msg = f'Failed to parse configuration file "{config_path}": {e}'
        raise ConfigValidationError(msg, config_path) from e
    except OSError as e:
        msg = f'Failed to read configuration file "{config_path}": {e}'
        raise ConfigValidationError(msg, config_path) from e

    if log_level is not None:
        config_dict = {**config_dict, "log_level": log_level}

    return validate_config_dict(config_dict, config_path)
