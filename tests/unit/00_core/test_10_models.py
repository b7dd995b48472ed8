# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the pydantic models."""

import pytest
from pydantic import ValidationError

from retry_mailer.models import ConnectionDetails, Content, ContentType, MailDetails


def test_content_type_values():
    """Enum values map to their MIME subtypes."""
    assert ContentType("html") is ContentType.HTML
    assert ContentType("text") is ContentType.TEXT
    assert ContentType.HTML.mime_subtype == "html"
    assert ContentType.TEXT.mime_subtype == "plain"


def test_unknown_content_type_rejected():
    """Content types outside the enum fail model validation."""
    with pytest.raises(ValidationError):
        Content(type="markdown", content="# hi")


def test_content_defaults_to_text():
    """An empty Content is a plain text body."""
    content = Content()
    assert content.type is ContentType.TEXT
    assert content.content == ""
    assert content.template_path is None


def test_connection_details_are_frozen():
    """ConnectionDetails cannot be reassigned."""
    conn = ConnectionDetails(host="h", port=25, user="u", password="p")
    with pytest.raises(ValidationError):
        conn.host = "other"


def test_connection_defaults():
    """TLS is on and the socket timeout is 10 seconds by default."""
    conn = ConnectionDetails(host="h", port=25, user="u", password="p")
    assert conn.use_tls is True
    assert conn.timeout == 10.0


def test_mail_details_defaults_are_independent():
    """List defaults are not shared between instances."""
    first = MailDetails()
    second = MailDetails()
    first.to.append("a@b.com")
    assert second.to == []
    assert first.content.type is ContentType.TEXT


def test_mail_details_rejects_unknown_fields():
    """Unknown MailDetails fields are rejected."""
    with pytest.raises(ValidationError):
        MailDetails(reply_to="x@y.com")
