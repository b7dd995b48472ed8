# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for composing and delivering mail.

Every error raised by the package derives from :class:`MailerError` and
carries a stable ``code`` string, so callers can branch on the kind of
failure without matching on messages::

    ValidationError          fails fast, no I/O attempted
        EmptyContentError
        FieldTooLongError
        InvalidConnectionError
    MessageBuildError        fails fast while composing the message
        TemplateError
        NoContentProvidedError
        InvalidHeaderError
    DeliveryError
        TransportError       one failed attempt, retried
        DeliveryTimeoutError cancellation observed while backing off
        RetriesExhaustedError
"""

from __future__ import annotations


class MailerError(RuntimeError):
    """Base class for all retry mailer failures."""

    code = "mailer_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code.replace("_", " "))


class ValidationError(MailerError):
    """Raised before any network activity when input fields are invalid."""

    code = "validation_error"


class EmptyContentError(ValidationError):
    """The resolved message body is empty."""

    code = "empty_content"

    def __init__(self, message: str = "content missing"):
        super().__init__(message)


class FieldTooLongError(ValidationError):
    """A header field exceeds the maximum allowed length."""

    code = "field_too_long"

    def __init__(self, field: str, length: int, limit: int):
        super().__init__(f"{field} too long ({length} > {limit} characters)")
        self.field = field
        self.length = length
        self.limit = limit


class InvalidConnectionError(ValidationError):
    """SMTP connection parameters are missing or out of range."""

    code = "invalid_connection"

    def __init__(self, problems: list[str]):
        super().__init__("invalid connection details: " + "; ".join(problems))
        self.problems = list(problems)


class MessageBuildError(MailerError):
    """The message body could not be produced."""

    code = "message_build_error"


class TemplateError(MessageBuildError):
    """Template loading or rendering failed."""

    code = "template_error"

    def __init__(self, template_path: str, reason: str):
        super().__init__(f"cannot render template {template_path}: {reason}")
        self.template_path = template_path


class NoContentProvidedError(MessageBuildError):
    """HTML content requested without literal content or a template path."""

    code = "no_content_provided"

    def __init__(self, message: str = "no content provided"):
        super().__init__(message)


class InvalidHeaderError(MessageBuildError):
    """A header value contains a line break and cannot be emitted."""

    code = "invalid_header"

    def __init__(self, header: str):
        super().__init__(f"{header} header must not contain line breaks")
        self.header = header


class DeliveryError(MailerError):
    """Base class for failures of the delivery phase."""

    code = "delivery_error"


class TransportError(DeliveryError):
    """A single delivery attempt failed. The original error is the ``__cause__``."""

    code = "transport_error"


class DeliveryTimeoutError(DeliveryError):
    """Cancellation or deadline fired while waiting for the next attempt."""

    code = "timeout"

    def __init__(self, attempts: int, message: str = "send email timeout"):
        super().__init__(message)
        self.attempts = attempts


class RetriesExhaustedError(DeliveryError):
    """Every allowed attempt failed."""

    code = "retries_exhausted"

    def __init__(self, attempts: int, last_error: BaseException | None = None):
        super().__init__(f"retries are exhausted after {attempts} attempt(s)")
        self.attempts = attempts
        self.last_error = last_error
