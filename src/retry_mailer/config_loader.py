# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration loader for SMTP connection and delivery settings.

Settings are read from an INI file, with ``RMAIL_*`` environment variables
taking precedence over file values.

Example:
    Configuration file format (config.ini)::

        [smtp]
        host = smtp.example.com
        port = 587
        user = mailer@example.com
        password = secret
        use_tls = true
        timeout = 10

        [delivery]
        max_retries = 3
        time_unit = 1.0
        send_timeout = 120

        [templates]
        base_dir = /srv/mail/templates

    Environment variables:
        RMAIL_CONFIG - Path to the INI file (default: config.ini)
        RMAIL_SMTP_HOST, RMAIL_SMTP_PORT, RMAIL_SMTP_USER,
        RMAIL_SMTP_PASSWORD, RMAIL_SMTP_USE_TLS, RMAIL_SMTP_TIMEOUT
        RMAIL_MAX_RETRIES, RMAIL_TIME_UNIT, RMAIL_SEND_TIMEOUT
        RMAIL_TEMPLATE_DIR
        RMAIL_LOG_LEVEL - Logging level (default: INFO)

    Loading::

        config = load_config("/etc/retry-mailer/config.ini")
        email = Email(config.connection, strategy=config.retry_strategy())
"""

from __future__ import annotations

import configparser
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .logger import get_logger
from .models import ConnectionDetails
from .retry import DEFAULT_MAX_RETRIES, DEFAULT_TIME_UNIT, RetryStrategy

logger = get_logger("ConfigLoader")

ENV_PREFIX = "RMAIL_"
DEFAULT_CONFIG_PATH = "config.ini"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class MailerConfig:
    """Resolved settings for building and sending mail.

    Attributes:
        connection: SMTP endpoint and credentials (not yet validated).
        max_retries: Total delivery attempts per send.
        time_unit: Seconds per backoff time unit.
        send_timeout: Seconds after which retry waits are aborted, or None.
        template_dir: Base directory for relative template paths.
        log_level: Logging level name for entry points.
    """

    connection: ConnectionDetails = field(
        default_factory=lambda: ConnectionDetails(host="", port=0, user="", password="")
    )
    max_retries: int = DEFAULT_MAX_RETRIES
    time_unit: float = DEFAULT_TIME_UNIT
    send_timeout: float | None = None
    template_dir: str | None = None
    log_level: str = "INFO"

    def retry_strategy(self) -> RetryStrategy:
        """Build the backoff strategy described by these settings."""
        return RetryStrategy(time_unit=self.time_unit)


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {key}: {value!r}")


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {key}: {value!r}") from exc


def _parse_float(key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Invalid number for {key}: {value!r}") from exc


def load_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> MailerConfig:
    """Load settings from ``config_path`` and the environment.

    A missing file is not an error; defaults and environment values apply.

    Args:
        config_path: INI file path. Defaults to ``$RMAIL_CONFIG`` or
            ``config.ini``.
        environ: Environment mapping, ``os.environ`` when omitted.

    Raises:
        ValueError: If a numeric or boolean setting cannot be parsed.
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG_PATH))
    parser = configparser.ConfigParser()
    if path.exists():
        parser.read(path)
        logger.debug("Loaded configuration from %s", path)
    else:
        logger.debug("Configuration file %s not found, using defaults", path)

    def get(section: str, option: str, env_key: str) -> str | None:
        value = env.get(f"{ENV_PREFIX}{env_key}")
        if value is not None:
            return value
        if parser.has_option(section, option):
            return parser.get(section, option)
        return None

    port = get("smtp", "port", "SMTP_PORT")
    use_tls = get("smtp", "use_tls", "SMTP_USE_TLS")
    smtp_timeout = get("smtp", "timeout", "SMTP_TIMEOUT")
    connection = ConnectionDetails(
        host=get("smtp", "host", "SMTP_HOST") or "",
        port=_parse_int("smtp.port", port) if port is not None else 0,
        user=get("smtp", "user", "SMTP_USER") or "",
        password=get("smtp", "password", "SMTP_PASSWORD") or "",
        use_tls=_parse_bool("smtp.use_tls", use_tls) if use_tls is not None else True,
        timeout=_parse_float("smtp.timeout", smtp_timeout) if smtp_timeout is not None else 10.0,
    )

    config = MailerConfig(connection=connection)
    if (value := get("delivery", "max_retries", "MAX_RETRIES")) is not None:
        config.max_retries = _parse_int("delivery.max_retries", value)
    if (value := get("delivery", "time_unit", "TIME_UNIT")) is not None:
        config.time_unit = _parse_float("delivery.time_unit", value)
    if (value := get("delivery", "send_timeout", "SEND_TIMEOUT")) is not None:
        config.send_timeout = _parse_float("delivery.send_timeout", value)
    config.template_dir = get("templates", "base_dir", "TEMPLATE_DIR")
    config.log_level = (get("logging", "level", "LOG_LEVEL") or "INFO").upper()
    return config
