"""Plain-text mail composition using :class:`postkit.mail.SimpleEmail`."""

from __future__ import annotations

from postkit.mail import SimpleEmail


def build_plain_message() -> None:
    """Construct a plain-text message and print the RFC822 payload."""
    email = (
        SimpleEmail()
        .set_host_name("smtp.example.com")
        .set_from("sender@example.com", "postkit example")
        .add_to("user@example.com")
        .set_subject("Plain Greetings")
    )
    email.set_msg("Hello from postkit!\nThis message uses the plain content type.")
    print(email.build_mime_message().as_string())


if __name__ == "__main__":  # pragma: no cover - manual example
    build_plain_message()
