"""The ``postkit send`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from postkit.cli.common import console, exit_error, verbosity_level
from postkit.config import PostkitError, load_config
from postkit.logging import init_logging
from postkit.mail import Email

__all__ = ["send"]


def _parse_header(raw: str) -> tuple[str, str]:
    """Split a ``NAME=VALUE`` header option."""
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Expected NAME=VALUE, got {raw!r}", param_hint="--header")
    return name.strip(), value.strip()


def _read_body(body: str | None, body_file: Path | None) -> str:
    if body is not None and body_file is not None:
        exit_error("Use either --body or --body-file, not both")
    if body_file is not None:
        return body_file.read_text(encoding="utf-8")
    if body is None:
        exit_error("A message body is required (--body or --body-file)")
    return body


def _apply_connection_options(
    email: Email,
    host: str | None,
    port: int | None,
    ssl: bool | None,
    starttls: bool | None,
) -> None:
    if host:
        email.set_host_name(host)
    if ssl is not None:
        email.set_ssl_on_connect(ssl)
    if starttls is not None:
        email.set_start_tls_enabled(starttls)
    if port is not None:
        if email.ssl_on_connect:
            email.set_ssl_smtp_port(port)
        else:
            email.set_smtp_port(port)


def send(  # pylint: disable=too-many-arguments,too-many-locals
    sender: Annotated[
        str | None,
        typer.Option("--from", "-f", help="Sender address (defaults to mail.from in the config)."),
    ] = None,
    to: Annotated[
        list[str] | None,
        typer.Option("--to", "-t", help="Recipient address. Repeat for several."),
    ] = None,
    cc: Annotated[
        list[str] | None,
        typer.Option("--cc", help="Carbon-copy address. Repeat for several."),
    ] = None,
    bcc: Annotated[
        list[str] | None,
        typer.Option("--bcc", help="Blind carbon-copy address. Repeat for several."),
    ] = None,
    reply_to: Annotated[
        list[str] | None,
        typer.Option("--reply-to", help="Reply-To address. Repeat for several."),
    ] = None,
    subject: Annotated[
        str | None,
        typer.Option("--subject", "-s", help="Subject line."),
    ] = None,
    body: Annotated[
        str | None,
        typer.Option("--body", "-m", help="Message body."),
    ] = None,
    body_file: Annotated[
        Path | None,
        typer.Option("--body-file", exists=True, dir_okay=False, help="Read the message body from a file."),
    ] = None,
    content_type: Annotated[
        str,
        typer.Option("--content-type", help="MIME type of the body, e.g. 'text/html; charset=UTF-8'."),
    ] = "text/plain",
    header: Annotated[
        list[str] | None,
        typer.Option("--header", "-H", help="Extra header as NAME=VALUE. Repeat for several."),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option("--host", help="SMTP server host name."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="SMTP server port."),
    ] = None,
    ssl: Annotated[
        bool | None,
        typer.Option("--ssl/--no-ssl", help="Connect with implicit TLS."),
    ] = None,
    starttls: Annotated[
        bool | None,
        typer.Option("--starttls/--no-starttls", help="Upgrade the connection with STARTTLS."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file (defaults to the postkit.conf.yml lookup)."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Build and print the message without sending it."),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase log output (-v info, -vv debug, -vvv SMTP trace)."),
    ] = 0,
) -> None:
    """Build a message and send it over SMTP.

    Examples:
        # Plain text message through a local relay
        postkit send --host localhost -f bot@example.com -t dev@example.com -s "Hi" -m "Hello"

        # HTML body from a file, settings from postkit.conf.yml
        postkit send -t dev@example.com -s Report --body-file report.html --content-type text/html

        # Show the message that would be sent
        postkit send --host localhost -f bot@example.com -t dev@example.com -m "Hello" --dry-run
    """
    headers = [_parse_header(raw) for raw in header or []]
    text = _read_body(body, body_file)

    try:
        settings = load_config(config)
        init_logging(level=verbosity_level(verbose), preset=settings.logging.preset)
        email = Email.from_config(settings)
        _apply_connection_options(email, host, port, ssl, starttls)
        if sender:
            email.set_from(sender)
        for method, addresses in (
            (email.add_to, to),
            (email.add_cc, cc),
            (email.add_bcc, bcc),
            (email.add_reply_to, reply_to),
        ):
            if addresses:
                method(addresses)
        email.set_subject(subject)
        for name, value in headers:
            email.add_header(name, value)
        email.set_content(text, content_type)

        if dry_run:
            message = email.build_mime_message()
            console.print(message.as_string(), markup=False, highlight=False, soft_wrap=True)
            return

        message_id = email.send()
    except (PostkitError, ValueError) as exc:
        exit_error(str(exc))

    console.print(f"[green]Sent[/] {escape(message_id)}", highlight=False)
