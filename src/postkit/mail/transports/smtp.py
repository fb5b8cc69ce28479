"""SMTP transport built on :mod:`smtplib`.

Supports implicit TLS (``SMTP_SSL``), opportunistic or mandatory STARTTLS and
optional authentication. When the ``postkit.mail.transports.smtp`` logger is
enabled for TRACE, the raw SMTP dialogue printed by smtplib is captured and
re-logged line by line, together with the negotiated TLS parameters.

Examples:
    Send through a submission server with STARTTLS::

        from postkit.mail.transports import SMTPCredentials, SMTPTransport

        transport = SMTPTransport(
            "smtp.example.com",
            credentials=SMTPCredentials(username="bot", password="secret"),
        )
        transport.send(message)
"""

from __future__ import annotations

import contextlib
import io
import logging
import smtplib
import ssl
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from postkit.logging import TRACE_LEVEL
from postkit.mail.exceptions import MailTransportError
from postkit.mail.transport import MailTransport

if TYPE_CHECKING:
    from collections.abc import Iterator
    from email.message import EmailMessage

__all__ = ["SMTPCredentials", "SMTPSecurity", "SMTPTransport"]

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SMTPCredentials:
    """Username/password pair used for SMTP AUTH.

    Attributes:
        username: Login name.
        password: Login secret. Never logged.
    """

    username: str | None = None
    password: str | None = None

    def __repr__(self) -> str:
        return f"SMTPCredentials(username={self.username!r}, password=***)"


@dataclass(frozen=True, slots=True)
class SMTPSecurity:
    """TLS settings of an SMTP connection.

    Attributes:
        use_ssl: Connect with implicit TLS (``SMTP_SSL``, usually port 465).
        use_starttls: Upgrade a plain connection when the server offers it.
        require_starttls: Fail instead of sending in clear text when the
            server does not offer STARTTLS.
        verify_hostname: Check that the server certificate matches the host.
    """

    use_ssl: bool = False
    use_starttls: bool = True
    require_starttls: bool = False
    verify_hostname: bool = True

    def create_context(self) -> ssl.SSLContext:
        """Return the SSL context used for TLS handshakes."""
        context = ssl.create_default_context()
        if not self.verify_hostname:
            context.check_hostname = False
        return context


@contextlib.contextmanager
def _capture_smtp_debug() -> Iterator[io.StringIO]:
    """Redirect stderr, where smtplib prints its debug output, into a buffer."""
    buffer = io.StringIO()
    original = sys.stderr
    sys.stderr = buffer
    try:
        yield buffer
    finally:
        sys.stderr = original


def _log_smtp_debug_output(buffer: io.StringIO) -> None:
    """Re-log captured smtplib debug lines at TRACE level."""
    if not log.isEnabledFor(TRACE_LEVEL):
        return
    for raw_line in buffer.getvalue().splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("send:"):
            log.log(TRACE_LEVEL, "[SMTP] >>> %s", line[len("send:") :].strip())
        elif line.startswith("reply:"):
            log.log(TRACE_LEVEL, "[SMTP] <<< %s", line[len("reply:") :].strip())
        else:
            log.log(TRACE_LEVEL, "[SMTP] %s", line)


def _common_name(entries: Any) -> str | None:
    """Pull the commonName out of a ``getpeercert()`` subject/issuer tuple."""
    try:
        for rdn in entries:
            for key, value in rdn:
                if key == "commonName":
                    return str(value)
    except (TypeError, ValueError):
        return None
    return None


def _extract_ssl_info(sock: ssl.SSLSocket | None) -> dict[str, Any]:
    """Collect TLS version, cipher and certificate names from a socket.

    Every lookup is best effort: a failing accessor only drops its keys.
    """
    if sock is None:
        return {}

    info: dict[str, Any] = {}
    try:
        info["version"] = sock.version() or "unknown"
    except Exception:  # pylint: disable=broad-except
        info["version"] = "unknown"

    try:
        cipher = sock.cipher()
    except Exception:  # pylint: disable=broad-except
        cipher = None
    if cipher:
        info["cipher_name"], info["cipher_protocol"], info["cipher_bits"] = cipher

    try:
        cert = sock.getpeercert()
    except Exception:  # pylint: disable=broad-except
        cert = None
    if cert:
        peer_cn = _common_name(cert.get("subject", ()))
        if peer_cn:
            info["peer_cn"] = peer_cn
        issuer_cn = _common_name(cert.get("issuer", ()))
        if issuer_cn:
            info["issuer_cn"] = issuer_cn
        if "notBefore" in cert:
            info["valid_from"] = cert["notBefore"]
        if "notAfter" in cert:
            info["valid_until"] = cert["notAfter"]
    return info


def _log_ssl_info(label: str, sock: ssl.SSLSocket | None) -> None:
    info = _extract_ssl_info(sock)
    if not info:
        return
    log.log(
        TRACE_LEVEL,
        "[SMTP] %s: %s, cipher=%s (%s bits)",
        label,
        info.get("version"),
        info.get("cipher_name", "n/a"),
        info.get("cipher_bits", "n/a"),
    )
    if "peer_cn" in info:
        log.log(TRACE_LEVEL, "[SMTP] Certificate: CN=%s, issuer=%s", info["peer_cn"], info.get("issuer_cn", "n/a"))


class SMTPTransport(MailTransport):
    """Synchronous transport delivering messages over SMTP.

    Args:
        host: SMTP server host name.
        port: Server port (587 for submission, 465 for implicit TLS).
        credentials: Optional login credentials.
        security: TLS settings (defaults to opportunistic STARTTLS).
        timeout: Connection timeout in seconds. ``None`` blocks without a
            timeout.
        socket_timeout: Timeout in seconds for socket reads and writes once
            connected. ``None`` blocks without a timeout.
        envelope_from: Envelope sender (``MAIL FROM``) overriding the
            message's ``From`` header, e.g. a bounce address.
        local_hostname: Name announced in EHLO (defaults to the FQDN).

    Raises:
        MailTransportError: If *host* is empty or a timeout is not positive.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        credentials: SMTPCredentials | None = None,
        security: SMTPSecurity | None = None,
        timeout: float | None = 30.0,
        socket_timeout: float | None = 30.0,
        envelope_from: str | None = None,
        local_hostname: str | None = None,
    ) -> None:
        if not host:
            raise MailTransportError("SMTP host is required")
        if timeout is not None and timeout <= 0:
            raise MailTransportError("Timeout must be greater than 0")
        if socket_timeout is not None and socket_timeout <= 0:
            raise MailTransportError("Socket timeout must be greater than 0")
        self.host = host
        self.port = port
        self.credentials = credentials
        self.security = security or SMTPSecurity()
        self.timeout = timeout
        self.socket_timeout = socket_timeout
        self.envelope_from = envelope_from
        self.local_hostname = local_hostname

    def _connect(self) -> smtplib.SMTP:
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "timeout": self.timeout,
        }
        if self.local_hostname:
            kwargs["local_hostname"] = self.local_hostname
        if self.security.use_ssl:
            kwargs["context"] = self.security.create_context()
            return smtplib.SMTP_SSL(**kwargs)
        return smtplib.SMTP(**kwargs)

    def _upgrade(self, client: smtplib.SMTP, trace_enabled: bool) -> None:
        """Run STARTTLS when configured and offered by the server."""
        if self.security.use_ssl or not (self.security.use_starttls or self.security.require_starttls):
            return
        if not client.has_extn("STARTTLS"):
            if self.security.require_starttls:
                raise MailTransportError(f"SMTP server {self.host} does not support STARTTLS")
            log.warning("SMTP server %s does not offer STARTTLS, sending in clear text", self.host)
            return
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Upgrading connection with STARTTLS")
        client.starttls(context=self.security.create_context())
        client.ehlo()
        if trace_enabled:
            _log_ssl_info("TLS", getattr(client, "sock", None))

    def _login(self, client: smtplib.SMTP, trace_enabled: bool) -> None:
        if self.credentials is None or not self.credentials.username:
            return
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Authenticating as: %s", self.credentials.username)
        client.login(self.credentials.username, self.credentials.password or "")
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Authentication successful")

    def send(self, message: EmailMessage) -> None:
        """Deliver *message* over a fresh SMTP connection.

        Args:
            message: The message to send. ``Bcc`` recipients are delivered
                but the header itself is not transmitted.

        Raises:
            MailTransportError: If connecting, negotiating TLS, logging in or
                sending fails.
        """
        trace_enabled = log.isEnabledFor(TRACE_LEVEL)
        if trace_enabled:
            log.log(
                TRACE_LEVEL,
                "[SMTP] Connecting to %s:%d (ssl=%s, starttls=%s)",
                self.host,
                self.port,
                self.security.use_ssl,
                self.security.use_starttls,
            )

        debug_capture = _capture_smtp_debug() if trace_enabled else contextlib.nullcontext(None)
        try:
            with debug_capture as buffer:
                try:
                    with self._connect() as client:
                        if trace_enabled:
                            client.set_debuglevel(1)
                            if self.security.use_ssl:
                                _log_ssl_info("SSL", getattr(client, "sock", None))
                        if getattr(client, "sock", None) is not None:
                            client.sock.settimeout(self.socket_timeout)
                        client.ehlo()
                        self._upgrade(client, trace_enabled)
                        self._login(client, trace_enabled)
                        if trace_enabled:
                            log.log(TRACE_LEVEL, "[SMTP] MAIL FROM: %s", self.envelope_from or message.get("From"))
                            log.log(
                                TRACE_LEVEL,
                                "[SMTP] RCPT TO: %s",
                                ", ".join(str(message.get(name)) for name in ("To", "Cc", "Bcc") if message.get(name)),
                            )
                            log.log(TRACE_LEVEL, "[SMTP] Subject: %s", message.get("Subject"))
                        if self.envelope_from:
                            client.send_message(message, from_addr=self.envelope_from)
                        else:
                            client.send_message(message)
                finally:
                    if buffer is not None:
                        _log_smtp_debug_output(buffer)
        except MailTransportError:
            raise
        except (smtplib.SMTPException, OSError) as exc:
            log.debug("SMTP delivery to %s:%d failed: %s", self.host, self.port, exc)
            raise MailTransportError(f"SMTP delivery failed: {exc}") from exc

        log.debug("Email sent via SMTP %s:%d", self.host, self.port)
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Message sent successfully")
