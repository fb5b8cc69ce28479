"""Transport abstraction for delivering built messages."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from email.message import EmailMessage

__all__ = ["MailTransport"]


class MailTransport(ABC):
    """Deliver a fully built :class:`~email.message.EmailMessage`.

    Implementations raise :class:`~postkit.mail.exceptions.MailTransportError`
    when delivery fails.
    """

    @abstractmethod
    def send(self, message: EmailMessage) -> None:
        """Send *message* to every recipient listed in its headers."""
