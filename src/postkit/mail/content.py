"""Message body variants accepted by the email builder.

A body is either a scalar value with an explicit MIME type
(:class:`TextContent`) or a pre-assembled multipart message whose parts are
passed through untouched (:class:`MultipartContent`). The builder holds at
most one of them, so both forms can never be set at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from email.message import EmailMessage, Message
from typing import Union

from postkit.mail.exceptions import MailValidationError

__all__ = ["Content", "MultipartContent", "TextContent", "split_mime_type"]

TEXT_PLAIN = "text/plain"


def split_mime_type(mime_type: str) -> tuple[str, str, dict[str, str]]:
    """Split ``type/subtype; key=value`` into its parts.

    Args:
        mime_type: Content type, optionally with parameters.

    Returns:
        Tuple of (maintype, subtype, parameters). Names are lower-cased and
        parameter values unquoted.

    Raises:
        MailValidationError: If the type is not of the ``maintype/subtype`` form.

    Examples:
        >>> split_mime_type("text/plain; charset=ISO-8859-1")
        ('text', 'plain', {'charset': 'ISO-8859-1'})
    """
    kind, *raw_params = (segment.strip() for segment in mime_type.split(";"))
    maintype, sep, subtype = kind.partition("/")
    if not sep or not maintype or not subtype:
        raise MailValidationError(f"Invalid content type: {mime_type!r}")

    params: dict[str, str] = {}
    for raw in raw_params:
        key, eq, value = raw.partition("=")
        if eq and key.strip():
            params[key.strip().lower()] = value.strip().strip('"')
    return maintype.lower(), subtype.lower(), params


@dataclass(frozen=True, slots=True)
class TextContent:
    """A scalar body with its MIME type.

    Attributes:
        value: Body text, or raw bytes for non-text types.
        mime_type: Content type such as ``text/plain`` or
            ``text/html; charset=UTF-8``.
    """

    value: str | bytes
    mime_type: str = TEXT_PLAIN

    def __post_init__(self) -> None:
        maintype, _, _ = split_mime_type(self.mime_type)
        if maintype == "multipart":
            raise MailValidationError("Multipart bodies must be supplied as a multipart message")

    @property
    def charset(self) -> str | None:
        """Charset declared in the MIME type parameters, if any."""
        return split_mime_type(self.mime_type)[2].get("charset")

    def apply(self, message: EmailMessage, charset: str | None) -> None:
        """Write this body into *message* as a single part."""
        maintype, subtype, _ = split_mime_type(self.mime_type)
        encoding = charset or "utf-8"
        if maintype == "text":
            text = self.value.decode(encoding) if isinstance(self.value, bytes) else self.value
            message.set_content(text, subtype=subtype, charset=encoding)
            return
        data = self.value.encode(encoding) if isinstance(self.value, str) else self.value
        message.set_content(data, maintype=maintype, subtype=subtype)


@dataclass(frozen=True, slots=True)
class MultipartContent:
    """A pre-assembled multipart body.

    Attributes:
        body: Multipart message whose content type and parts become the
            message content as-is.
    """

    body: Message

    def __post_init__(self) -> None:
        if not self.body.is_multipart():
            raise MailValidationError("Multipart content requires a multipart message")

    def apply(self, message: EmailMessage, charset: str | None) -> None:  # pylint: disable=unused-argument
        """Transplant the multipart content type and parts into *message*."""
        message["Content-Type"] = self.body.get("Content-Type", "multipart/mixed")
        message["MIME-Version"] = "1.0"
        message.set_payload(list(self.body.get_payload()))


Content = Union[TextContent, MultipartContent]
