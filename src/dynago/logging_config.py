"""
Logging configuration for dynago.

This module provides logging setup with support for console and file output.
Provider credentials are automatically masked in log messages.
"""

from __future__ import annotations

import logging
import logging.handlers
import re
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path
    from typing import Final


# Credential field names as they appear in the configuration file
_CREDENTIAL_KEYS: Final[str] = r"api_token|access_key_id|secret_access_key"

# Pattern to match sensitive tokens/keys in log messages
# Each tuple is (pattern, replacement)
# For partial masking, capture the prefix to keep and mask the rest
SENSITIVE_PATTERNS: Final[list[tuple[re.Pattern[str], str]]] = [
    # Authorization header (CloudFlare API token)
    # Keep first 6 characters, mask the rest
    (
        re.compile(
            r"((?:Authorization:\s*)?Bearer\s+)(.{0,6})([^\s\"']*)", re.IGNORECASE,
        ),
        r"\1\2******",
    ),
    # Credential fields, e.g. from a config repr or a YAML dump
    # Supports: key="...", key='...', key=..., key: ... (unquoted)
    # Keep first 6 characters of the value, mask the rest
    (
        re.compile(rf'((?:{_CREDENTIAL_KEYS})\s*[=:]\s*")(.{{0,6}})([^"]*)"', re.IGNORECASE),
        r'\1\2******"',
    ),
    (
        re.compile(rf"((?:{_CREDENTIAL_KEYS})\s*[=:]\s*')(.{{0,6}})([^']*)'", re.IGNORECASE),
        r"\1\2******'",
    ),
    (
        re.compile(
            rf"((?:{_CREDENTIAL_KEYS})\s*[=:]\s*)(?![\"'])([^\s,\"&']{{0,6}})([^\s,\"&']*)",
            re.IGNORECASE,
        ),
        r"\1\2******",
    ),
]


# Constants
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

PACKAGE_LOGGER: Final[str] = "dynago"

LOG_LEVELS: Final[dict[str, int]] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class SensitiveFilter(logging.Filter):
    """
    A logging filter that masks sensitive information.

    This filter replaces API tokens and access keys with asterisks
    to prevent credential leakage in log files.
    """

    @staticmethod
    def _mask_sensitive(value: str) -> str:
        """
        Apply all sensitive patterns to mask a string.

        Parameters
        ----------
        value : str
            The string to process.

        Returns
        -------
        str
            The string with sensitive data masked.
        """
        result = value
        for pattern, replacement in SENSITIVE_PATTERNS:
            result = pattern.sub(replacement, result)
        return result

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter and modify log record to mask sensitive data.

        Parameters
        ----------
        record : logging.LogRecord
            The log record to process.

        Returns
        -------
        bool
            Always returns True (record is always logged).
        """
        if record.msg:
            record.msg = self._mask_sensitive(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                # Dict-style formatting: %(key)s
                record.args = {
                    k: self._mask_sensitive(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                # Tuple-style formatting: %s, %d, etc.
                record.args = tuple(
                    self._mask_sensitive(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return True


def resolve_level(level: str) -> int:
    """
    Map a configured level name to a logging level.

    Unknown names fall back to INFO.

    Parameters
    ----------
    level : str
        Level name (debug, info, warn, warning, error), case-insensitive.

    Returns
    -------
    int
        The logging module level.
    """
    return LOG_LEVELS.get(level.strip().lower(), logging.INFO)


def _configure_handler(handler: logging.Handler) -> None:
    """
    Configure a logging handler with formatter and sensitive filter.

    Parameters
    ----------
    handler : logging.Handler
        The handler to configure.
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    sensitive_filter = SensitiveFilter()

    handler.setFormatter(formatter)
    handler.addFilter(sensitive_filter)


def setup_logging(level: str, log_file: Path | None = None) -> logging.Logger:
    """
    Set up the package logger.

    Console output is always enabled; file output is added when
    ``log_file`` is given.

    Parameters
    ----------
    level : str
        Log level name from the configuration.
    log_file : Path | None, optional
        Path to an additional log file.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolve_level(level))

    # Clear any existing handlers
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    console_handler = logging.StreamHandler(sys.stdout)
    _configure_handler(console_handler)
    logger.addHandler(console_handler)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.WatchedFileHandler(
                str(log_file),
                encoding="utf-8",
                delay=False,
            )
            _configure_handler(file_handler)
            logger.addHandler(file_handler)
            logger.info('File logging enabled: "%s".', log_file)
        except OSError as e:
            logger.critical("Failed to enable file logging: %s", e)
            sys.exit(1)

    # Prevent propagation to root logger
    logger.propagate = False
    return logger
