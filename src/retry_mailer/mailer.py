# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""The email entity: a mutable message bound to one SMTP transport.

An :class:`Email` is created from validated connection details and,
optionally, a :class:`~retry_mailer.models.MailDetails`. Fields are changed
through the ``set_*`` methods, which never validate; everything is checked
when :meth:`Email.send` runs.

An instance is meant to be used by a single caller at a time. Independent
instances may be sent concurrently, including instances that share one
:class:`~retry_mailer.transport.SmtpTransport`.

Example:
    Sending a text mail with up to three attempts::

        email = Email(ConnectionDetails(host="smtp.example.com", port=587,
                                        user="mailer", password="secret"))
        email.set_to(["ada@example.com"])
        email.set_subject("Hi")
        email.set_sender("noreply@example.com")
        email.set_content(Content(type=ContentType.TEXT, content="hello"))
        await email.send(3, timeout=60)
"""

from __future__ import annotations

import asyncio
from typing import Any

from .models import ConnectionDetails, Content, MailDetails
from .retry import DEFAULT_MAX_RETRIES, RetryStrategy
from .sender import SmtpSender
from .templates import TemplateRenderer
from .transport import SmtpTransport
from .validation import validate_connection


class Email:
    """Composable email with retrying delivery.

    Raises:
        InvalidConnectionError: From the constructor, when ``connection`` has
            an empty host, user or password, or a non-positive port.
    """

    def __init__(
        self,
        connection: ConnectionDetails,
        details: MailDetails | None = None,
        *,
        transport: SmtpTransport | None = None,
        renderer: TemplateRenderer | None = None,
        strategy: RetryStrategy | None = None,
    ):
        validate_connection(connection)
        self.connection = connection
        self.details = details.model_copy(deep=True) if details is not None else MailDetails()
        self._transport = transport or SmtpTransport(connection)
        self._sender = SmtpSender(renderer=renderer, strategy=strategy)

    @property
    def transport(self) -> SmtpTransport:
        """Transport handle fixed at construction."""
        return self._transport

    def set_to(self, to: list[str]) -> None:
        self.details.to = list(to)

    def set_cc(self, cc: list[str]) -> None:
        self.details.cc = list(cc)

    def set_bcc(self, bcc: list[str]) -> None:
        self.details.bcc = list(bcc)

    def set_subject(self, subject: str) -> None:
        self.details.subject = subject

    def set_sender(self, sender: str) -> None:
        self.details.sender = sender

    def set_sender_name(self, sender_name: str) -> None:
        self.details.sender_name = sender_name

    def set_return_email(self, return_email: str) -> None:
        """Set the Return-Path header, also used as the envelope sender."""
        self.details.return_email = return_email

    def set_tags(self, tags: str) -> None:
        """Set the value of the ``X-SES-MESSAGE-TAGS`` header."""
        self.details.tags = tags

    def set_content(self, content: Content | dict[str, Any]) -> None:
        """Set the body. Templates are rendered when the email is sent."""
        self.details.content = content if isinstance(content, Content) else Content(**content)

    def set_images_to_embed(self, images: list[str]) -> None:
        """Set image paths embedded inline, referenced as ``cid:<file name>``."""
        self.details.images_to_embed = list(images)

    def set_attachments(self, files: list[str]) -> None:
        self.details.attachments = list(files)

    async def send(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        *,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        """Validate and deliver, retrying up to ``max_retries`` attempts in total.

        Args:
            max_retries: Total number of delivery attempts allowed.
            cancel_event: Setting it aborts the wait between attempts.
            timeout: Seconds after which waiting between attempts is aborted.

        Raises:
            MailerError: A subclass describing the terminal condition.
        """
        await self._sender.send(self, max_retries, cancel_event=cancel_event, timeout=timeout)
