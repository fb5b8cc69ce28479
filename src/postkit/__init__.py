"""postkit: build email messages once, send them over SMTP."""

from postkit.config import PostkitError, load_config
from postkit.mail import (
    BuildState,
    Email,
    MailConfigurationError,
    MailError,
    MailSession,
    MailStateError,
    MailTransport,
    MailTransportError,
    MailValidationError,
    SimpleEmail,
)
from postkit.meta import __version__
from postkit.utils import EmailAddress, ValidationError, parse_email_address

__all__ = [
    "BuildState",
    "Email",
    "EmailAddress",
    "MailConfigurationError",
    "MailError",
    "MailSession",
    "MailStateError",
    "MailTransport",
    "MailTransportError",
    "MailValidationError",
    "PostkitError",
    "SimpleEmail",
    "ValidationError",
    "__version__",
    "load_config",
    "parse_email_address",
]
