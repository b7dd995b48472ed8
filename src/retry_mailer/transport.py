# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Single-attempt SMTP delivery on top of aiosmtplib.

:class:`SmtpTransport` is the transport handle owned by one email entity.
It keeps only the immutable :class:`~retry_mailer.models.ConnectionDetails`
and opens a fresh session for every delivery, so one handle can safely back
concurrent sends.

TLS behavior based on port and ``use_tls``:

- Port 465 with ``use_tls``: direct TLS (implicit TLS)
- Any other port with ``use_tls``: STARTTLS
- ``use_tls`` disabled: plain SMTP

Example:
    Delivering a prepared descriptor once::

        transport = SmtpTransport(connection)
        await deliver_once(transport, descriptor)
"""

from __future__ import annotations

from email.message import EmailMessage

import aiosmtplib

from .builder import MessageDescriptor
from .errors import TransportError
from .logger import get_logger
from .models import ConnectionDetails

logger = get_logger("SmtpTransport")


class SmtpTransport:
    """Deliver messages through one SMTP server.

    Attributes:
        details: Connection parameters, validated by the caller.
    """

    def __init__(self, details: ConnectionDetails):
        self.details = details

    def _client(self) -> aiosmtplib.SMTP:
        d = self.details
        if d.use_tls and d.port == 465:
            return aiosmtplib.SMTP(hostname=d.host, port=d.port, start_tls=False, use_tls=True, timeout=d.timeout)
        if d.use_tls:
            return aiosmtplib.SMTP(hostname=d.host, port=d.port, start_tls=True, use_tls=False, timeout=d.timeout)
        return aiosmtplib.SMTP(hostname=d.host, port=d.port, start_tls=False, use_tls=False, timeout=d.timeout)

    async def deliver(self, message: EmailMessage, sender: str | None = None) -> None:
        """Connect, authenticate, send ``message`` and close the session.

        Recipients are taken from the To, Cc and Bcc headers; the Bcc header
        is stripped before transmission by aiosmtplib.

        Raises:
            aiosmtplib.SMTPException: On any protocol or authentication error.
            OSError: If the server cannot be reached.
        """
        smtp = self._client()
        await smtp.connect()
        try:
            if self.details.user and self.details.password:
                await smtp.login(self.details.user, self.details.password)
            await smtp.send_message(message, sender=sender)
        finally:
            if smtp.is_connected:
                try:
                    await smtp.quit()
                except aiosmtplib.SMTPException:
                    smtp.close()


async def deliver_once(transport: SmtpTransport, descriptor: MessageDescriptor) -> None:
    """Perform one delivery attempt for ``descriptor``.

    Every failure, including unreadable attachment files, is reported as a
    :class:`TransportError` chained to the original exception. No attempt is
    made to tell temporary failures from permanent ones.
    """
    try:
        message = descriptor.to_email_message()
        await transport.deliver(message, sender=descriptor.envelope_sender)
    except Exception as exc:
        raise TransportError(f"{type(exc).__name__}: {exc}") from exc
