"""Tests for the message body variants."""

from __future__ import annotations

from email.message import EmailMessage

import pytest

from postkit.mail import MailValidationError, MultipartContent, TextContent
from postkit.mail.content import split_mime_type


class TestSplitMimeType:
    """Parsing of ``type/subtype; params`` strings."""

    def test_plain(self) -> None:
        """A bare type has no parameters."""
        assert split_mime_type("text/plain") == ("text", "plain", {})

    def test_parameters(self) -> None:
        """Parameters are unquoted and keyed in lower case."""
        assert split_mime_type('Text/HTML; Charset="UTF-8"') == ("text", "html", {"charset": "UTF-8"})

    def test_ignores_malformed_parameter(self) -> None:
        """Parameters without a value are dropped."""
        assert split_mime_type("text/plain; flowed") == ("text", "plain", {})

    @pytest.mark.parametrize("value", ["UTF-8", "text/", "/plain", ""])
    def test_rejects_invalid(self, value: str) -> None:
        """Anything but ``maintype/subtype`` is rejected."""
        with pytest.raises(MailValidationError, match="Invalid content type"):
            split_mime_type(value)


class TestTextContent:
    """Scalar bodies."""

    def test_charset_property(self) -> None:
        """The charset comes from the MIME type parameters."""
        assert TextContent("x", "text/plain; charset=ISO-8859-1").charset == "ISO-8859-1"
        assert TextContent("x").charset is None

    def test_rejects_multipart_type(self) -> None:
        """Multipart bodies need the multipart variant."""
        with pytest.raises(MailValidationError, match="multipart message"):
            TextContent("x", "multipart/mixed")

    def test_apply_uses_charset(self) -> None:
        """Text is encoded in the charset passed at build time."""
        message = EmailMessage()
        TextContent("Grüße", "text/plain").apply(message, "ISO-8859-1")
        assert message.get_content_charset() == "iso-8859-1"
        assert message.get_content().rstrip("\n") == "Grüße"

    def test_apply_defaults_to_utf8(self) -> None:
        """Without a charset the body is UTF-8."""
        message = EmailMessage()
        TextContent("Grüße", "text/plain").apply(message, None)
        assert message.get_content_charset() == "utf-8"

    def test_apply_decodes_text_bytes(self) -> None:
        """Bytes given for a text type are decoded first."""
        message = EmailMessage()
        TextContent("hello".encode(), "text/plain").apply(message, None)
        assert message.get_content().rstrip("\n") == "hello"

    def test_apply_non_text(self) -> None:
        """Non-text values are stored as bytes."""
        message = EmailMessage()
        TextContent('{"ok": true}', "application/json").apply(message, None)
        assert message.get_content_type() == "application/json"
        assert message.get_content() == b'{"ok": true}'


class TestMultipartContent:
    """Pre-assembled multipart bodies."""

    def test_rejects_single_part(self) -> None:
        """A single-part message is refused."""
        body = EmailMessage()
        body.set_content("plain")
        with pytest.raises(MailValidationError, match="requires a multipart message"):
            MultipartContent(body)

    def test_apply_transplants_parts(self) -> None:
        """The content type and parts are copied onto the target."""
        body = EmailMessage()
        body.make_mixed()
        part = EmailMessage()
        part.set_content("first")
        body.attach(part)

        message = EmailMessage()
        MultipartContent(body).apply(message, None)
        assert message.get_content_type() == "multipart/mixed"
        assert message["MIME-Version"] == "1.0"
        assert message.get_payload() == [part]
