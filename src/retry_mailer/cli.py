# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for retry-mailer.

Usage:
    retry-mailer send --to ada@example.com --subject "Hi" --text "hello"
    retry-mailer send --to ada@example.com --subject "Report" \\
        --template report.html --data '{"total": 42}' --attach report.pdf
    retry-mailer config

SMTP settings come from ``--config`` (or ``$RMAIL_CONFIG``) and the
``RMAIL_*`` environment variables; see :mod:`retry_mailer.config_loader`.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config_loader import MailerConfig, load_config
from .errors import MailerError
from .logger import configure_logging
from .mailer import Email
from .models import Content, ContentType
from .templates import TemplateRenderer

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def _build_content(text: str | None, html: str | None, template: str | None, data: str | None) -> Content:
    chosen = [opt for opt in (text, html, template) if opt is not None]
    if len(chosen) != 1:
        raise click.UsageError("Use exactly one of --text, --html or --template.")
    if data is not None and template is None:
        raise click.UsageError("--data is only valid together with --template.")
    if text is not None:
        return Content(type=ContentType.TEXT, content=text)
    if html is not None:
        return Content(type=ContentType.HTML, content=html)
    template_data: dict[str, Any] | None = None
    if data is not None:
        try:
            template_data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise click.BadParameter(f"invalid JSON: {exc}", param_hint="--data") from exc
        if not isinstance(template_data, dict):
            raise click.BadParameter("must be a JSON object", param_hint="--data")
    return Content(type=ContentType.HTML, template_path=template, data=template_data)


@click.group()
@click.version_option(package_name="retry-mailer")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="INI configuration file (default: $RMAIL_CONFIG or config.ini).")
@click.pass_context
def main(ctx: click.Context, config_path: str | None) -> None:
    """Compose emails and deliver them over SMTP with retries."""
    # pydantic.ValidationError is a ValueError subclass
    try:
        config = load_config(config_path)
    except ValueError as exc:
        print_error(escape(f"invalid configuration: {exc}"))
        raise SystemExit(1) from exc
    configure_logging(config.log_level)
    ctx.obj = config


@main.command("send")
@click.option("--to", "to", multiple=True, required=True, help="Recipient address (repeatable).")
@click.option("--cc", multiple=True, help="Cc address (repeatable).")
@click.option("--bcc", multiple=True, help="Bcc address (repeatable).")
@click.option("--subject", default="", help="Subject line.")
@click.option("--sender", default="", help="From address.")
@click.option("--sender-name", default="", help="From display name.")
@click.option("--return-email", default="", help="Return-Path / envelope sender.")
@click.option("--tags", default="", help="X-SES-MESSAGE-TAGS header value.")
@click.option("--text", default=None, help="Plain text body.")
@click.option("--html", default=None, help="Literal HTML body.")
@click.option("--template", default=None, help="HTML template file rendered as body.")
@click.option("--data", default=None, help="JSON object passed to --template.")
@click.option("--embed", multiple=True, type=click.Path(dir_okay=False), help="Inline image (repeatable).")
@click.option("--attach", multiple=True, type=click.Path(dir_okay=False), help="Attachment (repeatable).")
@click.option("--max-retries", type=int, default=None, help="Total delivery attempts.")
@click.option("--timeout", type=float, default=None, help="Abort retry waits after this many seconds.")
@click.pass_obj
def send_cmd(
    config: MailerConfig,
    to: tuple[str, ...],
    cc: tuple[str, ...],
    bcc: tuple[str, ...],
    subject: str,
    sender: str,
    sender_name: str,
    return_email: str,
    tags: str,
    text: str | None,
    html: str | None,
    template: str | None,
    data: str | None,
    embed: tuple[str, ...],
    attach: tuple[str, ...],
    max_retries: int | None,
    timeout: float | None,
) -> None:
    """Send one email."""
    content = _build_content(text, html, template, data)
    max_retries = config.max_retries if max_retries is None else max_retries
    timeout = config.send_timeout if timeout is None else timeout
    try:
        strategy = config.retry_strategy()
    except ValueError as exc:
        print_error(escape(f"invalid configuration: {exc}"))
        raise SystemExit(1) from exc

    try:
        email = Email(
            config.connection,
            renderer=TemplateRenderer(config.template_dir),
            strategy=strategy,
        )
        email.set_to(list(to))
        email.set_cc(list(cc))
        email.set_bcc(list(bcc))
        email.set_subject(subject)
        email.set_sender(sender)
        email.set_sender_name(sender_name)
        email.set_return_email(return_email)
        email.set_tags(tags)
        email.set_content(content)
        email.set_images_to_embed(list(embed))
        email.set_attachments(list(attach))
        run_async(email.send(max_retries, timeout=timeout))
    except MailerError as exc:
        print_error(escape(f"{exc} ({exc.code})"))
        raise SystemExit(1) from exc

    print_success(f"Email sent to {', '.join(to)}")


@main.command("config")
@click.pass_obj
def config_cmd(config: MailerConfig) -> None:
    """Show the effective configuration (password masked)."""
    conn = config.connection
    table = Table(title="retry-mailer configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("smtp.host", conn.host or "[dim]-[/dim]")
    table.add_row("smtp.port", str(conn.port))
    table.add_row("smtp.user", conn.user or "[dim]-[/dim]")
    table.add_row("smtp.password", "********" if conn.password else "[dim]-[/dim]")
    table.add_row("smtp.use_tls", str(conn.use_tls))
    table.add_row("smtp.timeout", str(conn.timeout))
    table.add_row("delivery.max_retries", str(config.max_retries))
    table.add_row("delivery.time_unit", str(config.time_unit))
    table.add_row("delivery.send_timeout", str(config.send_timeout))
    table.add_row("templates.base_dir", config.template_dir or "[dim]-[/dim]")
    console.print(table)


if __name__ == "__main__":
    main()
