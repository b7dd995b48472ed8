# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Send orchestration: resolve body, validate, then retry delivery."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from .builder import build, render_body
from .logger import get_logger
from .retry import RetryStrategy, send_with_retry
from .templates import TemplateRenderer
from .transport import deliver_once
from .validation import validate_email

if TYPE_CHECKING:
    from .mailer import Email

logger = get_logger("SmtpSender")


class SmtpSender:
    """Deliver :class:`~retry_mailer.mailer.Email` instances with retries.

    Body resolution, validation and header building run once per send and
    fail fast. Only delivery, which reads the referenced files, is repeated
    by the retry loop.
    """

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        strategy: RetryStrategy | None = None,
    ):
        self.renderer = renderer or TemplateRenderer()
        self.strategy = strategy or RetryStrategy()

    async def send(
        self,
        email: Email,
        max_retries: int,
        *,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        """Send ``email`` allowing at most ``max_retries`` delivery attempts.

        Raises:
            NoContentProvidedError: HTML content without content or template.
            TemplateError: The body template failed to render.
            EmptyContentError: The resolved body is empty.
            FieldTooLongError: A header field is longer than allowed.
            InvalidHeaderError: A header value contains a line break.
            DeliveryTimeoutError: Cancelled while waiting between attempts.
            RetriesExhaustedError: Every attempt failed.
        """
        details = email.details
        body = render_body(details.content, self.renderer)
        validate_email(details, body)
        descriptor = build(details, body)

        async def attempt(target: Email) -> None:
            await deliver_once(target.transport, descriptor)

        logger.debug("Sending email %r to %s (max %d attempts)", details.subject, details.to, max_retries)
        await send_with_retry(
            email,
            attempt,
            max_retries,
            strategy=self.strategy,
            cancel_event=cancel_event,
            timeout=timeout,
        )
        logger.info("Email %r delivered to %s", details.subject, ", ".join(details.to))
