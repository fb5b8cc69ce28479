"""Transport implementations for mail delivery.

Available transports:
    - SMTPTransport: Standard SMTP protocol (sync)
"""

from postkit.mail.transports.smtp import SMTPCredentials, SMTPSecurity, SMTPTransport

__all__ = [
    "SMTPCredentials",
    "SMTPSecurity",
    "SMTPTransport",
]
