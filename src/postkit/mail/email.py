"""Fluent email builder with a one-shot MIME build step.

The builder collects addresses, headers, subject, body and SMTP session
settings in any order, then :meth:`Email.build_mime_message` assembles an
:class:`email.message.EmailMessage` exactly once. Sending reuses that frozen
message.

Examples:
    Build and send a plain text message::

        from postkit.mail import SimpleEmail

        email = (
            SimpleEmail()
            .set_host_name("smtp.example.com")
            .set_from("bot@example.com", "Build Bot")
            .add_to("dev@example.com")
            .set_subject("Nightly build")
        )
        email.set_msg("All green.")
        email.send()
"""

from __future__ import annotations

import codecs
import logging
from email.header import Header
from email.message import EmailMessage, Message
from email.utils import make_msgid
from enum import Enum
from typing import TYPE_CHECKING, Any

import pendulum

from postkit.logging import TRACE_LEVEL
from postkit.mail.content import Content, MultipartContent, TextContent
from postkit.mail.exceptions import (
    MailConfigurationError,
    MailStateError,
    MailTransportError,
    MailValidationError,
)
from postkit.mail.session import (
    DEFAULT_SMTP_PORT,
    DEFAULT_SOCKET_TIMEOUT_MS,
    DEFAULT_SSL_SMTP_PORT,
    MailSession,
)
from postkit.mail.transports.smtp import SMTPCredentials
from postkit.utils.validators import (
    EmailAddress,
    ValidationError,
    normalize_address_list,
    parse_email_address,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime

    from postkit.mail.transport import MailTransport

__all__ = ["BuildState", "Email", "SimpleEmail"]

log = logging.getLogger(__name__)

INVALID_ADDRESS_LIST = "Address List provided was invalid"
ALREADY_BUILT = "The MimeMessage is already built."
NOT_BUILT = "MimeMessage has not been created yet"

# Set from the body given to set_content
CONTENT_HEADERS = frozenset({"content-type", "content-transfer-encoding", "mime-version"})


class BuildState(Enum):
    """Lifecycle of the message held by a builder."""

    UNBUILT = "unbuilt"
    BUILT = "built"


def _parse_addresses(addresses: Any, name: str | None = None) -> list[EmailAddress]:
    """Turn a single address or a sequence of addresses into parsed values.

    Raises:
        MailValidationError: If *addresses* is ``None`` or empty, or any entry
            is malformed.
    """
    if addresses is None:
        raise MailValidationError(INVALID_ADDRESS_LIST)
    if isinstance(addresses, EmailAddress):
        return [addresses if name is None else EmailAddress(address=addresses.address, name=name or None)]
    try:
        if isinstance(addresses, str):
            return [parse_email_address(addresses, name)]
        if name is not None:
            raise MailValidationError("A display name can only be given with a single address")
        parsed = normalize_address_list(addresses)
    except (ValidationError, TypeError, AttributeError) as exc:
        raise MailValidationError(INVALID_ADDRESS_LIST) from exc
    if not parsed:
        raise MailValidationError(INVALID_ADDRESS_LIST)
    return parsed


def _positive(value: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise MailValidationError(f"{what} must be a positive integer, got {value!r}")
    return value


def _timeout(value: int, what: str) -> int:
    # 0 means no timeout
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MailValidationError(f"{what} must be a non-negative integer, got {value!r}")
    return value


class Email:
    """Collect message settings and build an :class:`EmailMessage` once.

    Every mutator returns the builder so calls can be chained. Reading
    properties never triggers a build.

    Args:
        transport: Transport used by :meth:`send_mime_message`. When omitted,
            an SMTP transport is created from :attr:`mail_session`.

    Examples:
        >>> email = Email().set_host_name("smtp.example.com").set_from("ab@bc.com")
        >>> message = email.add_to("a.b@c.org").build_mime_message()
        >>> message["To"]
        'a.b@c.org'
    """

    def __init__(self, *, transport: MailTransport | None = None) -> None:
        self._from: EmailAddress | None = None
        self._to: list[EmailAddress] = []
        self._cc: list[EmailAddress] = []
        self._bcc: list[EmailAddress] = []
        self._reply_to: list[EmailAddress] = []
        self._headers: dict[str, str] = {}
        self._subject: str | None = None
        self._charset: str | None = None
        self._content: Content | None = None
        self._sent_date: datetime | None = None

        self._host_name: str | None = None
        self._smtp_port = DEFAULT_SMTP_PORT
        self._ssl_smtp_port = DEFAULT_SSL_SMTP_PORT
        self._ssl_on_connect = False
        self._start_tls_enabled = False
        self._start_tls_required = False
        self._ssl_check_server_identity = False
        self._socket_connection_timeout = DEFAULT_SOCKET_TIMEOUT_MS
        self._socket_timeout = DEFAULT_SOCKET_TIMEOUT_MS
        self._credentials: SMTPCredentials | None = None
        self._bounce_address: str | None = None

        self._transport = transport
        self._session: MailSession | None = None
        self._message: EmailMessage | None = None
        self._state = BuildState.UNBUILT

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(from={self._from.address if self._from else None!r}, "
            f"to={[a.address for a in self._to]!r}, state={self._state.value})"
        )

    @classmethod
    def from_config(cls, config: Mapping[str, Any], **kwargs: Any) -> Email:
        """Create a builder pre-configured from a ``mail`` config section.

        Args:
            config: Either a whole configuration (with a ``mail`` key) or the
                ``mail`` section itself, as returned by
                :func:`postkit.config.load_config`.
            **kwargs: Forwarded to the constructor (e.g. ``transport``).

        Returns:
            A new builder with host, ports, TLS flags, timeouts, charset,
            credentials, bounce address and default sender applied.
        """
        section: Mapping[str, Any] = config
        if "mail" in config:
            section = config.get("mail") or {}
        email = cls(**kwargs)

        if section.get("host"):
            email.set_host_name(section["host"])
        if section.get("port"):
            email.set_smtp_port(int(section["port"]))
        if section.get("ssl_port"):
            email.set_ssl_smtp_port(int(section["ssl_port"]))
        email.set_ssl_on_connect(bool(section.get("ssl", False)))
        email.set_start_tls_enabled(bool(section.get("starttls", False)))
        email.set_start_tls_required(bool(section.get("starttls_required", False)))
        email.set_ssl_check_server_identity(bool(section.get("check_server_identity", False)))
        if section.get("connection_timeout") is not None:
            email.set_socket_connection_timeout(int(section["connection_timeout"]))
        if section.get("timeout") is not None:
            email.set_socket_timeout(int(section["timeout"]))
        if section.get("charset"):
            email.set_charset(section["charset"])
        if section.get("username"):
            email.set_authentication(section["username"], section.get("password"))
        if section.get("bounce"):
            email.set_bounce_address(section["bounce"])
        if section.get("from"):
            email.set_from(section["from"])
        log.debug("Email builder configured from config (host=%s)", email.host_name)
        return email

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def set_from(self, address: str | EmailAddress, name: str | None = None) -> Email:
        """Set the sender address.

        Args:
            address: Sender mailbox, bare or in ``Name <address>`` form.
            name: Optional display name. Absent names stay ``None``.

        Raises:
            MailValidationError: If the address is malformed.
        """
        if address is None or isinstance(address, (list, tuple)):
            raise MailValidationError(INVALID_ADDRESS_LIST)
        self._from = _parse_addresses(address, name)[0]
        return self

    def add_to(self, addresses: Any, name: str | None = None) -> Email:
        """Append one address (with optional name) or a sequence of addresses to To.

        Raises:
            MailValidationError: ``"Address List provided was invalid"`` when
                *addresses* is ``None``, empty or contains a malformed entry.
        """
        self._to.extend(_parse_addresses(addresses, name))
        return self

    def add_cc(self, addresses: Any, name: str | None = None) -> Email:
        """Append one address or a sequence of addresses to Cc."""
        self._cc.extend(_parse_addresses(addresses, name))
        return self

    def add_bcc(self, addresses: Any, name: str | None = None) -> Email:
        """Append one address or a sequence of addresses to Bcc."""
        self._bcc.extend(_parse_addresses(addresses, name))
        return self

    def add_reply_to(self, addresses: Any, name: str | None = None) -> Email:
        """Append one address or a sequence of addresses to Reply-To."""
        self._reply_to.extend(_parse_addresses(addresses, name))
        return self

    def set_to(self, addresses: Sequence[str | EmailAddress]) -> Email:
        """Replace the To list."""
        self._to = _parse_addresses(addresses)
        return self

    def set_cc(self, addresses: Sequence[str | EmailAddress]) -> Email:
        """Replace the Cc list."""
        self._cc = _parse_addresses(addresses)
        return self

    def set_bcc(self, addresses: Sequence[str | EmailAddress]) -> Email:
        """Replace the Bcc list."""
        self._bcc = _parse_addresses(addresses)
        return self

    def set_reply_to(self, addresses: Sequence[str | EmailAddress]) -> Email:
        """Replace the Reply-To list."""
        self._reply_to = _parse_addresses(addresses)
        return self

    @property
    def from_address(self) -> EmailAddress | None:
        """Sender address, or ``None`` when unset."""
        return self._from

    @property
    def to_addresses(self) -> list[EmailAddress]:
        """Copy of the To list, in insertion order."""
        return list(self._to)

    @property
    def cc_addresses(self) -> list[EmailAddress]:
        """Copy of the Cc list, in insertion order."""
        return list(self._cc)

    @property
    def bcc_addresses(self) -> list[EmailAddress]:
        """Copy of the Bcc list, in insertion order."""
        return list(self._bcc)

    @property
    def reply_to_addresses(self) -> list[EmailAddress]:
        """Copy of the Reply-To list, in insertion order."""
        return list(self._reply_to)

    # ------------------------------------------------------------------
    # Headers, subject, body
    # ------------------------------------------------------------------

    def add_header(self, name: str | None, value: str | None) -> Email:
        """Add or overwrite a custom header.

        Raises:
            MailValidationError: ``"name can not be null or empty"`` or
                ``"value can not be null or empty"``, or when either contains
                a line break, or when *name* is a content header such as
                ``Content-Type``.
        """
        if not name:
            raise MailValidationError("name can not be null or empty")
        if not value:
            raise MailValidationError("value can not be null or empty")
        if any(char in name + value for char in "\r\n"):
            raise MailValidationError(f"Header {name!r} must not contain line breaks")
        if name.lower() in CONTENT_HEADERS:
            raise MailValidationError(f"Header {name!r} is derived from the content, use set_content instead")
        self._headers[name] = value
        return self

    def set_headers(self, headers: Mapping[str, str]) -> Email:
        """Replace all custom headers, validating each pair."""
        previous = self._headers
        self._headers = {}
        try:
            for name, value in headers.items():
                self.add_header(name, value)
        except MailValidationError:
            self._headers = previous
            raise
        return self

    @property
    def headers(self) -> dict[str, str]:
        """Copy of the custom headers."""
        return dict(self._headers)

    def set_subject(self, subject: str | None) -> Email:
        """Set the subject line. ``None`` clears it.

        Raises:
            MailValidationError: If the subject contains a line break.
        """
        if subject and any(char in subject for char in "\r\n"):
            raise MailValidationError("Subject must not contain line breaks")
        self._subject = subject
        return self

    @property
    def subject(self) -> str | None:
        """Subject line, or ``None`` when unset."""
        return self._subject

    def set_charset(self, charset: str | None) -> Email:
        """Set the charset used for the subject and text bodies.

        Raises:
            MailValidationError: If Python has no codec for *charset*.
        """
        if charset is not None:
            try:
                codecs.lookup(charset)
            except LookupError as exc:
                raise MailValidationError(f"Unknown charset: {charset!r}") from exc
        self._charset = charset
        return self

    @property
    def charset(self) -> str | None:
        """Configured charset, or ``None`` when unset."""
        return self._charset

    def set_content(self, content: str | bytes | Message, mime_type: str | None = None) -> Email:
        """Set the message body.

        Two forms are accepted, and the last one set wins:

        * ``set_content(value, mime_type)``: a scalar body and its type. A
          ``charset`` parameter in *mime_type* also becomes the builder charset.
        * ``set_content(multipart_body)``: a multipart message whose parts are
          used as-is.

        Raises:
            MailValidationError: If the MIME type is missing or malformed, or
                a message passed alone is not multipart.
        """
        if isinstance(content, Message):
            if mime_type is not None:
                raise MailValidationError("A multipart body carries its own content type")
            self._content = MultipartContent(content)
            return self

        if not isinstance(content, (str, bytes)):
            raise MailValidationError(f"Unsupported content type: {type(content).__name__}")
        if not mime_type:
            raise MailValidationError("A MIME type is required for scalar content")
        text = TextContent(content, mime_type)
        if text.charset:
            self.set_charset(text.charset)
        self._content = text
        return self

    @property
    def content(self) -> Content | None:
        """Body variant, or ``None`` when no body was set."""
        return self._content

    def set_sent_date(self, sent_date: datetime | None) -> Email:
        """Set the ``Date`` header value. ``None`` means "at build time"."""
        self._sent_date = sent_date
        return self

    @property
    def sent_date(self) -> datetime:
        """Configured sent date, or the current time when unset."""
        if self._sent_date is None:
            return pendulum.now("UTC")
        return self._sent_date

    # ------------------------------------------------------------------
    # Session settings
    # ------------------------------------------------------------------

    def _invalidate_session(self) -> None:
        if self._session is not None:
            log.log(TRACE_LEVEL, "Mail session settings changed, dropping cached session")
        self._session = None

    def set_host_name(self, host_name: str | None) -> Email:
        """Set the SMTP server host name."""
        self._host_name = host_name
        self._invalidate_session()
        return self

    @property
    def host_name(self) -> str | None:
        """SMTP server host name, or ``None`` when unset."""
        return self._host_name

    def set_smtp_port(self, port: int) -> Email:
        """Set the port used for plain and STARTTLS connections."""
        self._smtp_port = _positive(port, "SMTP port")
        self._invalidate_session()
        return self

    @property
    def smtp_port(self) -> int:
        """Port used for plain and STARTTLS connections."""
        return self._smtp_port

    def set_ssl_smtp_port(self, port: int) -> Email:
        """Set the port used when SSL on connect is enabled."""
        self._ssl_smtp_port = _positive(port, "SSL SMTP port")
        self._invalidate_session()
        return self

    @property
    def ssl_smtp_port(self) -> int:
        """Port used when SSL on connect is enabled."""
        return self._ssl_smtp_port

    def set_ssl_on_connect(self, enabled: bool) -> Email:
        """Connect with implicit TLS."""
        self._ssl_on_connect = bool(enabled)
        self._invalidate_session()
        return self

    @property
    def ssl_on_connect(self) -> bool:
        """Whether connections use implicit TLS."""
        return self._ssl_on_connect

    def set_start_tls_enabled(self, enabled: bool) -> Email:
        """Upgrade plain connections with STARTTLS when offered."""
        self._start_tls_enabled = bool(enabled)
        self._invalidate_session()
        return self

    @property
    def start_tls_enabled(self) -> bool:
        """Whether plain connections are upgraded with STARTTLS."""
        return self._start_tls_enabled

    def set_start_tls_required(self, required: bool) -> Email:
        """Refuse to send when the server does not offer STARTTLS."""
        self._start_tls_required = bool(required)
        self._invalidate_session()
        return self

    @property
    def start_tls_required(self) -> bool:
        """Whether sending fails when STARTTLS is not offered."""
        return self._start_tls_required

    def set_ssl_check_server_identity(self, enabled: bool) -> Email:
        """Verify that the server certificate matches the host name."""
        self._ssl_check_server_identity = bool(enabled)
        self._invalidate_session()
        return self

    @property
    def ssl_check_server_identity(self) -> bool:
        """Whether the server certificate host name is verified."""
        return self._ssl_check_server_identity

    def set_socket_connection_timeout(self, timeout_ms: int) -> Email:
        """Set the connect timeout in milliseconds. ``0`` disables it."""
        self._socket_connection_timeout = _timeout(timeout_ms, "Socket connection timeout")
        self._invalidate_session()
        return self

    @property
    def socket_connection_timeout(self) -> int:
        """Connect timeout in milliseconds."""
        return self._socket_connection_timeout

    def set_socket_timeout(self, timeout_ms: int) -> Email:
        """Set the socket read/write timeout in milliseconds. ``0`` disables it."""
        self._socket_timeout = _timeout(timeout_ms, "Socket timeout")
        self._invalidate_session()
        return self

    @property
    def socket_timeout(self) -> int:
        """Socket read/write timeout in milliseconds."""
        return self._socket_timeout

    def set_authentication(self, username: str, password: str | None) -> Email:
        """Authenticate with SMTP AUTH before sending."""
        if not username:
            raise MailValidationError("username can not be null or empty")
        self._credentials = SMTPCredentials(username=username, password=password)
        self._invalidate_session()
        return self

    def set_bounce_address(self, address: str | None) -> Email:
        """Set the envelope sender that receives bounces. ``None`` clears it.

        Raises:
            MailValidationError: If the address is malformed.
        """
        self._bounce_address = None if address is None else _parse_addresses(address)[0].address
        self._invalidate_session()
        return self

    @property
    def bounce_address(self) -> str | None:
        """Envelope sender receiving bounces, if set."""
        return self._bounce_address

    def set_mail_session(self, session: MailSession) -> Email:
        """Adopt every setting of an existing session and reuse it as-is."""
        self._host_name = session.host_name
        self._smtp_port = session.smtp_port
        self._ssl_smtp_port = session.ssl_smtp_port
        self._ssl_on_connect = session.ssl_on_connect
        self._start_tls_enabled = session.start_tls_enabled
        self._start_tls_required = session.start_tls_required
        self._ssl_check_server_identity = session.ssl_check_server_identity
        self._socket_connection_timeout = session.socket_connection_timeout
        self._socket_timeout = session.socket_timeout
        self._credentials = session.credentials
        self._bounce_address = session.bounce_address
        self._session = session
        return self

    @property
    def mail_session(self) -> MailSession:
        """The SMTP session, created on first access and cached.

        The cached session is dropped whenever a setting it depends on changes.

        Raises:
            MailConfigurationError: If no host name is set.
        """
        if self._session is None:
            if not self._host_name:
                raise MailConfigurationError("Cannot find valid hostname for mail session")
            self._session = MailSession(
                self._host_name,
                smtp_port=self._smtp_port,
                ssl_smtp_port=self._ssl_smtp_port,
                ssl_on_connect=self._ssl_on_connect,
                start_tls_enabled=self._start_tls_enabled,
                start_tls_required=self._start_tls_required,
                ssl_check_server_identity=self._ssl_check_server_identity,
                socket_connection_timeout=self._socket_connection_timeout,
                socket_timeout=self._socket_timeout,
                credentials=self._credentials,
                bounce_address=self._bounce_address,
            )
            log.debug("Created mail session for %s:%d", self._session.host_name, self._session.port)
        return self._session

    # ------------------------------------------------------------------
    # Build and send
    # ------------------------------------------------------------------

    @property
    def state(self) -> BuildState:
        """Whether the message has been built."""
        return self._state

    @property
    def mime_message(self) -> EmailMessage | None:
        """The built message, or ``None`` before a successful build."""
        return self._message

    def _check_ready(self) -> EmailAddress:
        if not self._host_name:
            raise MailConfigurationError("Cannot find valid hostname for mail session")
        if self._from is None:
            raise MailConfigurationError("From address required")
        if not (self._to or self._cc or self._bcc):
            raise MailConfigurationError("At least one receiver address required")
        return self._from

    def build_mime_message(self) -> EmailMessage:
        """Assemble the message. Allowed once per builder.

        Returns:
            The built message, also available as :attr:`mime_message`.

        Raises:
            MailStateError: ``"The MimeMessage is already built."`` on a second
                call after a successful build.
            MailConfigurationError: If the host name, sender or every
                recipient list is missing.
            MailValidationError: If the subject or body cannot be encoded in
                the charset, or a custom header value is rejected.
        """
        if self._state is BuildState.BUILT:
            raise MailStateError(ALREADY_BUILT)
        sender = self._check_ready()

        message = EmailMessage()
        message["From"] = [sender.header_address]
        for header, addresses in (
            ("To", self._to),
            ("Cc", self._cc),
            ("Bcc", self._bcc),
            ("Reply-To", self._reply_to),
        ):
            if addresses:
                message[header] = [address.header_address for address in addresses]

        try:
            if self._subject:
                if self._charset:
                    message["Subject"] = Header(self._subject, self._charset).encode(maxlinelen=0)
                else:
                    message["Subject"] = self._subject
        except (LookupError, UnicodeError) as exc:
            raise MailValidationError(f"Cannot encode subject: {exc}") from exc
        message["Date"] = self.sent_date

        try:
            if self._content is None:
                message.set_content("", charset=self._charset or "utf-8", cte="7bit")
            else:
                self._content.apply(message, self._charset)
        except (LookupError, UnicodeError) as exc:
            raise MailValidationError(f"Cannot encode message content: {exc}") from exc

        # Custom headers replace generated ones of the same name
        for name, value in self._headers.items():
            del message[name]
            try:
                message[name] = value
            except (TypeError, ValueError) as exc:
                raise MailValidationError(f"Invalid value for header {name!r}: {exc}") from exc
        if "Message-ID" not in message:
            message["Message-ID"] = make_msgid(domain=self._host_name)

        self._message = message
        self._state = BuildState.BUILT
        log.debug(
            "Built message %s (%d to, %d cc, %d bcc)",
            message["Message-ID"],
            len(self._to),
            len(self._cc),
            len(self._bcc),
        )
        return message

    def send_mime_message(self) -> str:
        """Send the built message.

        Returns:
            The ``Message-ID`` of the sent message.

        Raises:
            MailStateError: If the message has not been built yet.
            MailTransportError: If delivery fails.
        """
        if self._state is not BuildState.BUILT or self._message is None:
            raise MailStateError(NOT_BUILT)

        transport = self._transport or self.mail_session.create_transport()
        try:
            transport.send(self._message)
        except MailTransportError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            raise MailTransportError(f"Sending the email failed: {exc}") from exc

        message_id = str(self._message["Message-ID"])
        log.info("Sent message %s via %s", message_id, type(transport).__name__)
        return message_id

    def send(self) -> str:
        """Build the message, then send it.

        Returns:
            The ``Message-ID`` of the sent message.
        """
        self.build_mime_message()
        return self.send_mime_message()


class SimpleEmail(Email):
    """Builder for plain text messages."""

    def set_msg(self, msg: str | None) -> SimpleEmail:
        """Set the plain text body.

        Raises:
            MailValidationError: ``"Invalid message supplied"`` when empty.
        """
        if not msg:
            raise MailValidationError("Invalid message supplied")
        self.set_content(msg, "text/plain")
        return self
