"""Send a text + HTML message built from a pre-assembled multipart body."""

from __future__ import annotations

from email.message import EmailMessage

from postkit.logging import init_logging
from postkit.mail import Email


def build_alternative_body() -> EmailMessage:
    """Return a ``multipart/alternative`` body with plain and HTML parts."""
    body = EmailMessage()
    body.make_alternative()
    plain = EmailMessage()
    plain.set_content("Nightly build passed.")
    html = EmailMessage()
    html.set_content("<p>Nightly build <b>passed</b>.</p>", subtype="html")
    body.attach(plain)
    body.attach(html)
    return body


def main() -> None:
    """Build the message and print it; uncomment ``send`` to deliver it."""
    init_logging(preset="dev")
    email = (
        Email()
        .set_host_name("localhost")
        .set_smtp_port(1025)
        .set_from("ci@example.com", "CI")
        .add_to(["dev@example.com", "qa@example.com"])
        .add_header("X-Build", "1234")
        .set_subject("Nightly build")
        .set_content(build_alternative_body())
    )
    print(email.build_mime_message().as_string())
    # email.send_mime_message()


if __name__ == "__main__":  # pragma: no cover - manual example
    main()
