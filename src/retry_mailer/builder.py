# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Message composition: body resolution and transport-ready descriptors.

Building happens in two steps so that the expensive or fallible parts run
where they belong:

1. :func:`render_body` resolves the body once per send, before validation.
   Template failures are raised here and are never retried.
2. :func:`build` produces a :class:`MessageDescriptor` holding headers, body
   and file *paths*. Files are read only by
   :meth:`MessageDescriptor.to_email_message`, which the delivery adapter
   calls on every attempt, so a missing file is a delivery failure.

Example:
    Building the descriptor for a plain text mail::

        body = render_body(details.content, renderer)
        descriptor = build(details, body)
        message = descriptor.to_email_message()
"""

from __future__ import annotations

import mimetypes
from collections.abc import Iterable
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path

from .errors import InvalidHeaderError, NoContentProvidedError
from .models import Content, ContentType, MailDetails
from .templates import TemplateRenderer

TAGS_HEADER = "X-SES-MESSAGE-TAGS"


@dataclass
class MessageDescriptor:
    """Transport-ready description of one message.

    Attributes:
        headers: Header name to value, in the order they are emitted.
        body: The resolved body text.
        subtype: MIME subtype of the body (``html`` or ``plain``).
        inline_images: Paths embedded as inline parts, Content-ID = file name.
        attachments: Paths attached as regular file attachments.
        envelope_sender: MAIL FROM address, or None to derive it from From.
    """

    headers: dict[str, str]
    body: str
    subtype: str
    inline_images: list[str] = field(default_factory=list)
    attachments: list[str] = field(default_factory=list)
    envelope_sender: str | None = None

    def to_email_message(self) -> EmailMessage:
        """Materialise the descriptor, reading every referenced file.

        Raises:
            OSError: If an inline image or attachment cannot be read.
        """
        msg = EmailMessage()
        for name, value in self.headers.items():
            msg[name] = value
        msg.set_content(self.body, subtype=self.subtype)
        for path in self.inline_images:
            data, maintype, subtype, filename = _read_file(path)
            msg.add_related(
                data,
                maintype=maintype,
                subtype=subtype,
                cid=f"<{filename}>",
                filename=filename,
                disposition="inline",
            )
        for path in self.attachments:
            data, maintype, subtype, filename = _read_file(path)
            msg.add_attachment(data, maintype=maintype, subtype=subtype, filename=filename)
        return msg


def _read_file(path: str) -> tuple[bytes, str, str, str]:
    file_path = Path(path)
    data = file_path.read_bytes()
    mime_type, _ = mimetypes.guess_type(file_path.name)
    if not mime_type or "/" not in mime_type:
        mime_type = "application/octet-stream"
    maintype, subtype = mime_type.split("/", 1)
    return data, maintype, subtype, file_path.name


def format_addresses(addresses: Iterable[str]) -> list[str]:
    """Display-format addresses, dropping blanks and duplicates.

    The first occurrence of each address keeps its position.
    """
    formatted = (formataddr(("", addr.strip())) for addr in addresses if addr and addr.strip())
    return list(dict.fromkeys(formatted))


def render_body(content: Content, renderer: TemplateRenderer) -> str:
    """Resolve the body text for ``content``.

    HTML bodies use the literal content when present, otherwise the rendered
    template. Text bodies always use the literal content.

    Raises:
        NoContentProvidedError: HTML requested with neither content nor template.
        TemplateError: The template could not be rendered.
    """
    if content.type is ContentType.HTML:
        if content.content:
            return content.content
        if content.template_path:
            return renderer.render(content.template_path, content.data)
        raise NoContentProvidedError()
    if content.type is ContentType.TEXT:
        return content.content
    raise ValueError(f"unsupported content type: {content.type!r}")


def build(details: MailDetails, body: str) -> MessageDescriptor:
    """Create the descriptor for ``details`` with an already resolved body.

    Raises:
        InvalidHeaderError: A header value contains CR or LF.
    """
    headers: dict[str, str] = {}
    for header, addresses in (("To", details.to), ("Cc", details.cc), ("Bcc", details.bcc)):
        formatted = format_addresses(addresses)
        if formatted:
            headers[header] = ", ".join(formatted)

    headers["Subject"] = details.subject
    headers["From"] = formataddr((details.sender_name, details.sender))
    headers[TAGS_HEADER] = details.tags
    headers["Return-Path"] = details.return_email

    for name, value in headers.items():
        if "\r" in value or "\n" in value:
            raise InvalidHeaderError(name)

    return MessageDescriptor(
        headers=headers,
        body=body,
        subtype=details.content.type.mime_subtype,
        inline_images=list(details.images_to_embed),
        attachments=list(details.attachments),
        envelope_sender=details.return_email or details.sender or None,
    )
