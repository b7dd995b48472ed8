"""Email composition and SMTP delivery with exponential backoff retries.

This package builds a message (headers, plain or HTML body, inline images,
attachments) and delivers it with aiosmtplib, retrying failed attempts with
exponential backoff and jitter until success, exhaustion or cancellation.

- Field validation before any network activity
- HTML bodies from literal content or jinja2 templates
- Retry loop bounded by an ``asyncio.Event`` and/or a timeout
- INI and environment configuration, click command-line interface

Example:
    Sending a plain text mail::

        from retry_mailer import ConnectionDetails, Content, ContentType, Email

        email = Email(ConnectionDetails(host="smtp.example.com", port=587,
                                        user="mailer", password="secret"))
        email.set_to(["ada@example.com"])
        email.set_subject("Hi")
        email.set_content(Content(type=ContentType.TEXT, content="hello"))
        await email.send(max_retries=3, timeout=60)

Authors:
    Softwell S.r.l.
"""

from .builder import MessageDescriptor, build, render_body
from .errors import (
    DeliveryError,
    DeliveryTimeoutError,
    EmptyContentError,
    FieldTooLongError,
    InvalidConnectionError,
    InvalidHeaderError,
    MailerError,
    MessageBuildError,
    NoContentProvidedError,
    RetriesExhaustedError,
    TemplateError,
    TransportError,
    ValidationError,
)
from .mailer import Email
from .models import ConnectionDetails, Content, ContentType, MailDetails
from .retry import DEFAULT_MAX_RETRIES, RetryStrategy, send_with_retry
from .sender import SmtpSender
from .templates import TemplateRenderer
from .transport import SmtpTransport, deliver_once

__all__ = [
    "Email",
    "ConnectionDetails",
    "Content",
    "ContentType",
    "MailDetails",
    "MessageDescriptor",
    "build",
    "render_body",
    "RetryStrategy",
    "send_with_retry",
    "DEFAULT_MAX_RETRIES",
    "SmtpSender",
    "SmtpTransport",
    "deliver_once",
    "TemplateRenderer",
    "MailerError",
    "ValidationError",
    "EmptyContentError",
    "FieldTooLongError",
    "InvalidConnectionError",
    "MessageBuildError",
    "TemplateError",
    "NoContentProvidedError",
    "InvalidHeaderError",
    "DeliveryError",
    "TransportError",
    "DeliveryTimeoutError",
    "RetriesExhaustedError",
]
