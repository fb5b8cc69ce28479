"""Specialized exceptions raised by the postkit.mail module.

Exception hierarchy::

    PostkitError
        MailError (base for all mail errors)
            MailValidationError (invalid input, also ValueError)
            MailStateError (builder used in the wrong state, also RuntimeError)
            MailConfigurationError (missing host, sender or recipients)
            MailTransportError (delivery failure)
"""

from __future__ import annotations

from postkit.config.exceptions import PostkitError


class MailError(PostkitError):
    """Base exception for all mail module errors."""


class MailValidationError(MailError, ValueError):
    """Invalid address, header, content or parameter supplied to the builder."""


class MailStateError(MailError, RuntimeError):
    """Operation not allowed in the builder's current build state.

    Raised when a message is built twice, or sent before being built.
    """


class MailConfigurationError(MailError):
    """Builder or transport is missing configuration required to proceed."""


class MailTransportError(MailError):
    """Delivering a message through a transport failed."""


__all__ = [
    "MailConfigurationError",
    "MailError",
    "MailStateError",
    "MailTransportError",
    "MailValidationError",
]
