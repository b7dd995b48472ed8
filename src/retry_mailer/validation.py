# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Input checks run before any network activity."""

from __future__ import annotations

from .errors import EmptyContentError, FieldTooLongError, InvalidConnectionError
from .models import ConnectionDetails, MailDetails

MAX_FIELD_LENGTH = 500

# Checked in this order; the first offending field is reported.
LENGTH_LIMITED_FIELDS = ("subject", "tags", "sender", "sender_name", "return_email")


def validate_connection(details: ConnectionDetails) -> None:
    """Reject connection details that can never produce a working session.

    Every field is inspected and all problems are reported together.

    Raises:
        InvalidConnectionError: If host, user or password is empty, or the
            port is not positive.
    """
    problems: list[str] = []
    if not details.host:
        problems.append("host cannot be empty")
    if details.port <= 0:
        problems.append("port must be greater than 0")
    if not details.user:
        problems.append("user cannot be empty")
    if not details.password:
        problems.append("password cannot be empty")
    if problems:
        raise InvalidConnectionError(problems)


def validate_email(details: MailDetails, body: str) -> None:
    """Check the resolved body and header field lengths.

    Args:
        details: Mail fields to check. Never modified.
        body: The body that will be sent (literal or rendered template).

    Raises:
        EmptyContentError: If ``body`` is empty.
        FieldTooLongError: If a header field exceeds ``MAX_FIELD_LENGTH``.
    """
    if not body:
        raise EmptyContentError()
    for field in LENGTH_LIMITED_FIELDS:
        value = getattr(details, field)
        if len(value) > MAX_FIELD_LENGTH:
            raise FieldTooLongError(field, len(value), MAX_FIELD_LENGTH)
