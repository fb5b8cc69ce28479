"""Immutable SMTP session settings derived from an email builder.

A :class:`MailSession` is the memoized transport configuration of an
:class:`~postkit.mail.email.Email`: host, ports, TLS flags, timeouts and
credentials. It knows how to turn itself into an
:class:`~postkit.mail.transports.smtp.SMTPTransport`.
"""

from __future__ import annotations

from dataclasses import dataclass

from postkit.mail.transports.smtp import SMTPCredentials, SMTPSecurity, SMTPTransport

__all__ = [
    "DEFAULT_SMTP_PORT",
    "DEFAULT_SOCKET_TIMEOUT_MS",
    "DEFAULT_SSL_SMTP_PORT",
    "MailSession",
]

DEFAULT_SMTP_PORT = 25
DEFAULT_SSL_SMTP_PORT = 465
DEFAULT_SOCKET_TIMEOUT_MS = 60_000


def _seconds(timeout_ms: int) -> float | None:
    return timeout_ms / 1000 if timeout_ms else None


@dataclass(frozen=True, slots=True)
class MailSession:
    """SMTP settings shared by every send of one message.

    Attributes:
        host_name: SMTP server host name.
        smtp_port: Port used for plain and STARTTLS connections.
        ssl_smtp_port: Port used when ``ssl_on_connect`` is set.
        ssl_on_connect: Connect with implicit TLS.
        start_tls_enabled: Upgrade plain connections with STARTTLS when offered.
        start_tls_required: Refuse to send without STARTTLS.
        ssl_check_server_identity: Verify the certificate host name.
        socket_connection_timeout: Connect timeout in milliseconds, ``0`` for none.
        socket_timeout: Read/write timeout in milliseconds, ``0`` for none.
        credentials: SMTP AUTH credentials, if any.
        bounce_address: Envelope sender receiving bounces, if any.

    Examples:
        >>> session = MailSession("smtp.example.com", ssl_on_connect=True)
        >>> session.port
        465
        >>> session.connection_timeout
        60.0
    """

    host_name: str
    smtp_port: int = DEFAULT_SMTP_PORT
    ssl_smtp_port: int = DEFAULT_SSL_SMTP_PORT
    ssl_on_connect: bool = False
    start_tls_enabled: bool = False
    start_tls_required: bool = False
    ssl_check_server_identity: bool = False
    socket_connection_timeout: int = DEFAULT_SOCKET_TIMEOUT_MS
    socket_timeout: int = DEFAULT_SOCKET_TIMEOUT_MS
    credentials: SMTPCredentials | None = None
    bounce_address: str | None = None

    @property
    def port(self) -> int:
        """Port the transport connects to."""
        return self.ssl_smtp_port if self.ssl_on_connect else self.smtp_port

    @property
    def connection_timeout(self) -> float | None:
        """Connect timeout in seconds, ``None`` when disabled."""
        return _seconds(self.socket_connection_timeout)

    @property
    def timeout(self) -> float | None:
        """Socket read/write timeout in seconds, ``None`` when disabled."""
        return _seconds(self.socket_timeout)

    @property
    def security(self) -> SMTPSecurity:
        """TLS settings for the transport."""
        return SMTPSecurity(
            use_ssl=self.ssl_on_connect,
            use_starttls=self.start_tls_enabled,
            require_starttls=self.start_tls_required,
            verify_hostname=self.ssl_check_server_identity,
        )

    def create_transport(self) -> SMTPTransport:
        """Return an SMTP transport configured from this session."""
        return SMTPTransport(
            self.host_name,
            self.port,
            credentials=self.credentials,
            security=self.security,
            timeout=self.connection_timeout,
            socket_timeout=self.timeout,
            envelope_from=self.bounce_address,
        )
