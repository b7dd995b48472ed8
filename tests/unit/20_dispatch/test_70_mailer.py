# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the Email entity and SmtpSender orchestration."""

import asyncio

import pytest

from retry_mailer.errors import (
    DeliveryTimeoutError,
    EmptyContentError,
    FieldTooLongError,
    InvalidConnectionError,
    InvalidHeaderError,
    NoContentProvidedError,
    RetriesExhaustedError,
    TemplateError,
    TransportError,
)
from retry_mailer.mailer import Email
from retry_mailer.models import ConnectionDetails, Content, ContentType, MailDetails
from retry_mailer.retry import RetryStrategy
from retry_mailer.templates import TemplateRenderer
from retry_mailer.transport import SmtpTransport

FAST = RetryStrategy(time_unit=0.001)


class FakeTransport:
    """Transport double recording delivered messages."""

    def __init__(self, failures=None):
        self.failures = failures
        self.calls = 0
        self.delivered = []

    async def deliver(self, message, sender=None):
        self.calls += 1
        if self.failures is None or self.calls <= self.failures:
            raise ConnectionRefusedError("connection refused")
        self.delivered.append((message, sender))


@pytest.fixture
def connection():
    return ConnectionDetails(host="smtp.example.com", port=587, user="u", password="p")


def make_email(connection, transport, **kwargs):
    details = MailDetails(
        to=["a@b.com"],
        subject="Hi",
        sender="noreply@example.com",
        content=Content(type=ContentType.TEXT, content="hello"),
    )
    return Email(connection, details, transport=transport, strategy=kwargs.pop("strategy", FAST), **kwargs)


class TestConstruction:
    """Tests for Email construction."""

    @pytest.mark.parametrize(
        "overrides",
        [{"host": ""}, {"port": 0}, {"port": -1}, {"user": ""}, {"password": ""}],
    )
    def test_invalid_connection_rejected(self, overrides):
        """Construction fails for any invalid connection field."""
        values = {"host": "smtp.example.com", "port": 587, "user": "u", "password": "p"}
        values.update(overrides)
        with pytest.raises(InvalidConnectionError):
            Email(ConnectionDetails(**values))

    def test_default_transport_bound_to_connection(self, connection):
        """Without a transport an SmtpTransport for the connection is used."""
        email = Email(connection)
        assert isinstance(email.transport, SmtpTransport)
        assert email.transport.details is connection

    def test_details_copied(self, connection):
        """The Email works on a copy of the given details."""
        details = MailDetails(to=["a@b.com"])
        email = Email(connection, details)
        email.set_to(["c@d.com"])
        assert details.to == ["a@b.com"]

    def test_setters_update_details(self, connection):
        """Every setter writes its field."""
        email = Email(connection)
        email.set_to(["a@b.com"])
        email.set_cc(["c@d.com"])
        email.set_bcc(["e@f.com"])
        email.set_subject("Subject")
        email.set_sender("s@example.com")
        email.set_sender_name("Sender")
        email.set_return_email("r@example.com")
        email.set_tags("tag")
        email.set_content({"type": "html", "content": "<p>x</p>"})
        email.set_images_to_embed(["logo.png"])
        email.set_attachments(["report.pdf"])

        d = email.details
        assert (d.to, d.cc, d.bcc) == (["a@b.com"], ["c@d.com"], ["e@f.com"])
        assert (d.subject, d.sender, d.sender_name) == ("Subject", "s@example.com", "Sender")
        assert (d.return_email, d.tags) == ("r@example.com", "tag")
        assert d.content.type is ContentType.HTML
        assert d.images_to_embed == ["logo.png"]
        assert d.attachments == ["report.pdf"]

    def test_setters_do_not_validate_lengths(self, connection):
        """Setters accept values that validation would reject."""
        email = Email(connection)
        email.set_subject("x" * 1000)
        assert len(email.details.subject) == 1000


class TestSend:
    """Tests for Email.send."""

    async def test_concrete_scenario_exhausts_after_one_attempt(self, connection):
        """max_retries=1 with a failing transport makes one attempt."""
        transport = FakeTransport()
        email = make_email(connection, transport)
        with pytest.raises(RetriesExhaustedError) as exc_info:
            await email.send(1)
        assert transport.calls == 1
        assert exc_info.value.attempts == 1
        assert isinstance(exc_info.value.__cause__, TransportError)

    async def test_success_after_two_failures(self, connection):
        """Two failures then success delivers on the third attempt."""
        transport = FakeTransport(failures=2)
        email = make_email(connection, transport)
        await email.send(3)
        assert transport.calls == 3
        message, sender = transport.delivered[0]
        assert message["To"] == "a@b.com"
        assert message["Subject"] == "Hi"
        assert sender == "noreply@example.com"

    async def test_empty_content_fails_before_transport(self, connection):
        """An empty body never reaches the transport."""
        transport = FakeTransport(failures=0)
        email = make_email(connection, transport)
        email.set_content(Content(type=ContentType.TEXT, content=""))
        with pytest.raises(EmptyContentError):
            await email.send(3)
        assert transport.calls == 0

    async def test_field_too_long_fails_before_transport(self, connection):
        """An over-long field never reaches the transport."""
        transport = FakeTransport(failures=0)
        email = make_email(connection, transport)
        email.set_sender_name("n" * 501)
        with pytest.raises(FieldTooLongError):
            await email.send(3)
        assert transport.calls == 0

    async def test_html_without_content_or_template(self, connection):
        """HTML with neither literal nor template is rejected."""
        transport = FakeTransport(failures=0)
        email = make_email(connection, transport)
        email.set_content(Content(type=ContentType.HTML))
        with pytest.raises(NoContentProvidedError):
            await email.send(3)
        assert transport.calls == 0

    async def test_template_error_not_retried(self, connection, tmp_path):
        """A missing template fails once without delivery."""
        transport = FakeTransport(failures=0)
        email = make_email(connection, transport, renderer=TemplateRenderer(tmp_path))
        email.set_content(Content(type=ContentType.HTML, template_path="missing.html"))
        with pytest.raises(TemplateError):
            await email.send(3)
        assert transport.calls == 0

    async def test_template_body_delivered(self, connection, tmp_path):
        """The rendered template is sent as text/html."""
        (tmp_path / "welcome.html").write_text("<h1>Welcome {{ name }}</h1>")
        transport = FakeTransport(failures=0)
        email = make_email(connection, transport, renderer=TemplateRenderer(tmp_path))
        email.set_content(Content(type=ContentType.HTML, template_path="welcome.html", data={"name": "Ada"}))
        await email.send(1)
        message, _ = transport.delivered[0]
        assert message.get_content_type() == "text/html"
        assert "<h1>Welcome Ada</h1>" in message.get_content()

    async def test_template_rendering_to_empty_body(self, connection, tmp_path):
        """A template rendering to nothing is an empty body."""
        (tmp_path / "empty.html").write_text("")
        transport = FakeTransport(failures=0)
        email = make_email(connection, transport, renderer=TemplateRenderer(tmp_path))
        email.set_content(Content(type=ContentType.HTML, template_path="empty.html"))
        with pytest.raises(EmptyContentError):
            await email.send(1)

    async def test_header_line_break_not_retried(self, connection):
        """A subject carrying a line break fails once, with no transport call."""
        transport = FakeTransport(failures=0)
        email = make_email(connection, transport, strategy=RetryStrategy(time_unit=10))
        email.set_subject("Hi\nBcc: evil@x.com")
        with pytest.raises(InvalidHeaderError):
            await asyncio.wait_for(email.send(3), timeout=1)
        assert transport.calls == 0

    async def test_missing_attachment_is_retried(self, connection, tmp_path):
        """A missing attachment is retried as a delivery failure."""
        transport = FakeTransport(failures=0)
        email = make_email(connection, transport)
        email.set_attachments([str(tmp_path / "missing.pdf")])
        with pytest.raises(RetriesExhaustedError) as exc_info:
            await email.send(2)
        assert exc_info.value.attempts == 2
        assert transport.calls == 0

    async def test_zero_retries(self, connection):
        """A zero budget never calls the transport."""
        transport = FakeTransport(failures=0)
        email = make_email(connection, transport)
        with pytest.raises(RetriesExhaustedError):
            await email.send(0)
        assert transport.calls == 0

    async def test_cancel_event_stops_retries(self, connection):
        """The cancel event ends the send during backoff."""
        transport = FakeTransport()
        email = make_email(connection, transport, strategy=RetryStrategy(time_unit=10))
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, event.set)
        with pytest.raises(DeliveryTimeoutError):
            await email.send(5, cancel_event=event)
        assert transport.calls == 1

    async def test_timeout_stops_retries(self, connection):
        """The timeout ends the send during backoff."""
        transport = FakeTransport()
        email = make_email(connection, transport, strategy=RetryStrategy(time_unit=10))
        with pytest.raises(DeliveryTimeoutError):
            await email.send(5, timeout=0.05)
        assert transport.calls == 1

    async def test_independent_emails_share_transport_concurrently(self, connection):
        """Two Emails may send through one transport at once."""
        transport = FakeTransport(failures=0)
        first = make_email(connection, transport)
        second = make_email(connection, transport)
        second.set_to(["z@y.com"])
        await asyncio.gather(first.send(1), second.send(1))
        recipients = sorted(message["To"] for message, _ in transport.delivered)
        assert recipients == ["a@b.com", "z@y.com"]
