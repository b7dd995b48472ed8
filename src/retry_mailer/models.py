# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models describing an SMTP connection and a mail to compose.

Models:
    - ContentType: closed set of body kinds (html, text)
    - Content: body value object (literal text or template + data)
    - ConnectionDetails: immutable SMTP endpoint and credentials
    - MailDetails: recipients, sender metadata, content and file paths

Range checks on these models are intentionally left to
:mod:`retry_mailer.validation` so that failures surface as the package's own
error kinds rather than pydantic errors.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field


class ContentType(str, Enum):
    """Kind of message body.

    Attributes:
        HTML: Body is sent as ``text/html``; may come from a template.
        TEXT: Body is sent as ``text/plain``.
    """

    HTML = "html"
    TEXT = "text"

    @property
    def mime_subtype(self) -> str:
        """MIME subtype used for the body part."""
        if self is ContentType.HTML:
            return "html"
        if self is ContentType.TEXT:
            return "plain"
        raise ValueError(f"unsupported content type: {self!r}")


class Content(BaseModel):
    """Message body definition.

    For HTML content a non-empty ``content`` wins over ``template_path``;
    the template is rendered with ``data`` only when no literal is given.
    """

    model_config = ConfigDict(extra="forbid")

    type: Annotated[
        ContentType,
        Field(default=ContentType.TEXT, description="Body kind (html or text)"),
    ]
    content: Annotated[str, Field(default="", description="Literal body")]
    template_path: Annotated[
        str | None,
        Field(default=None, description="Template file rendered for HTML bodies"),
    ]
    data: Annotated[
        dict[str, Any] | None,
        Field(default=None, description="Variables passed to the template"),
    ]


class ConnectionDetails(BaseModel):
    """SMTP server endpoint and credentials. Immutable once created.

    TLS behaviour follows the port when ``use_tls`` is set: implicit TLS on
    465, STARTTLS on any other port.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: Annotated[str, Field(description="SMTP server hostname")]
    port: Annotated[int, Field(description="SMTP server port")]
    user: Annotated[str, Field(description="SMTP username")]
    password: Annotated[str, Field(description="SMTP password")]
    use_tls: Annotated[bool, Field(default=True, description="Use TLS or STARTTLS")]
    timeout: Annotated[
        float,
        Field(default=10.0, gt=0, description="Socket timeout in seconds"),
    ]


class MailDetails(BaseModel):
    """Everything needed to compose one message."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    to: Annotated[list[str], Field(default_factory=list)]
    cc: Annotated[list[str], Field(default_factory=list)]
    bcc: Annotated[list[str], Field(default_factory=list)]
    subject: str = ""
    sender: str = ""
    sender_name: str = ""
    return_email: str = ""
    tags: Annotated[str, Field(default="", description="Value of the X-SES-MESSAGE-TAGS header")]
    content: Annotated[Content, Field(default_factory=Content)]
    images_to_embed: Annotated[list[str], Field(default_factory=list)]
    attachments: Annotated[list[str], Field(default_factory=list)]
