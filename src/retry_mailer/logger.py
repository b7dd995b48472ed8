# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging helper for the retry mailer.

Modules only ask for named loggers here. Level, handlers and format are
configured once by the entry point through ``logging.basicConfig()`` so that
library callers keep full control over their own logging setup.

Example:
    Typical usage in a module::

        from retry_mailer.logger import get_logger

        logger = get_logger("RetryEngine")
        logger.info("Attempt %d failed", attempt)
"""

import logging

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = "RetryMailer") -> logging.Logger:
    """Return the standard library logger bound to ``name``.

    No handler or formatter is attached; that belongs to the application.

    Args:
        name: The logger name. Defaults to "RetryMailer".
    """
    return logging.getLogger(name)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line entry points.

    Unknown level names fall back to INFO.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        force=True,
    )
