"""Email building and delivery.

The :class:`Email` builder collects addresses, headers, subject, body and SMTP
session settings, builds an :class:`email.message.EmailMessage` exactly once,
then sends it through a :class:`MailTransport` (SMTP by default).

Examples:
    >>> from postkit.mail import Email
    >>> email = Email().set_host_name("smtp.example.com").set_from("ab@bc.com")
    >>> email.add_to(["a.b@c.org", "ab@bc.com"]).to_addresses[1].address
    'ab@bc.com'
"""

from postkit.mail.content import MultipartContent, TextContent
from postkit.mail.email import BuildState, Email, SimpleEmail
from postkit.mail.exceptions import (
    MailConfigurationError,
    MailError,
    MailStateError,
    MailTransportError,
    MailValidationError,
)
from postkit.mail.session import MailSession
from postkit.mail.transport import MailTransport

__all__ = [
    "BuildState",
    "Email",
    "MailConfigurationError",
    "MailError",
    "MailSession",
    "MailStateError",
    "MailTransport",
    "MailTransportError",
    "MailValidationError",
    "MultipartContent",
    "SimpleEmail",
    "TextContent",
]
