"""Email address parsing and validation helpers.

Addresses are accepted either bare (``user@example.com``) or with a display
name (``Grace Hopper <grace@example.org>``). Validation is deliberately
practical rather than RFC-complete: it rejects what real SMTP servers would
bounce and what could smuggle extra headers into a message.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from email.headerregistry import Address
from email.utils import formataddr, parseaddr
from typing import TYPE_CHECKING

from postkit.config.exceptions import PostkitError

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = [
    "EmailAddress",
    "ValidationError",
    "normalize_address_list",
    "parse_email_address",
]

_MAX_LOCAL_PART_LENGTH = 64
_MAX_DOMAIN_LENGTH = 255
_MAX_LABEL_LENGTH = 63
_MIN_TLD_LENGTH = 2

_LOCAL_PART_PATTERN = re.compile(r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+$")
_DOMAIN_LABEL_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


class ValidationError(PostkitError, ValueError):
    """Raised when a value fails validation."""


@dataclass(frozen=True, slots=True)
class EmailAddress:
    """A validated mailbox with an optional display name.

    Attributes:
        address: The ``local@domain`` mailbox.
        name: Display name, or ``None`` when the address has none.

    Examples:
        >>> EmailAddress(address="ada@example.org", name="Ada").formatted
        'Ada <ada@example.org>'
        >>> EmailAddress(address="ada@example.org").name is None
        True
    """

    address: str
    name: str | None = None

    @property
    def display_name(self) -> str | None:
        """Display name with control characters and double quotes neutralised."""
        if self.name is None:
            return None
        display = _CONTROL_CHARS.sub(" ", self.name).replace('"', "'")
        return " ".join(display.split()) or None

    @property
    def formatted(self) -> str:
        """Return the header-safe ``Name <address>`` rendering."""
        display = self.display_name
        if display is None:
            return self.address
        return formataddr((display, self.address))

    @property
    def header_address(self) -> Address:
        """Return the address as an :class:`email.headerregistry.Address`."""
        return Address(display_name=self.display_name or "", addr_spec=self.address)

    def __str__(self) -> str:
        return self.formatted


def _validate_mailbox(address: str) -> None:
    """Check the structure of a bare ``local@domain`` mailbox.

    Raises:
        ValidationError: If any part of the mailbox is malformed.
    """
    if address.count("@") != 1:
        raise ValidationError(f"Invalid email address: {address!r}")

    local, domain = address.split("@")
    if not local or len(local) > _MAX_LOCAL_PART_LENGTH or not _LOCAL_PART_PATTERN.match(local):
        raise ValidationError(f"Invalid local part in email address: {address!r}")
    if local.startswith(".") or local.endswith(".") or ".." in local:
        raise ValidationError(f"Invalid local part in email address: {address!r}")

    if not domain or len(domain) > _MAX_DOMAIN_LENGTH:
        raise ValidationError(f"Invalid domain in email address: {address!r}")
    labels = domain.split(".")
    if len(labels) < 2:
        raise ValidationError(f"Domain must contain a top-level domain: {address!r}")
    for label in labels:
        if len(label) > _MAX_LABEL_LENGTH or not _DOMAIN_LABEL_PATTERN.match(label):
            raise ValidationError(f"Invalid domain in email address: {address!r}")
    if len(labels[-1]) < _MIN_TLD_LENGTH or not labels[-1].isalpha():
        raise ValidationError(f"Invalid top-level domain in email address: {address!r}")


def parse_email_address(value: str | None, name: str | None = None) -> EmailAddress:
    """Parse and validate a single email address.

    Args:
        value: Address string, bare or in ``Name <address>`` form.
        name: Explicit display name. Overrides any name parsed from *value*.

    Returns:
        The validated address. Empty display names are normalised to ``None``.

    Raises:
        ValidationError: If the address is empty or malformed.

    Examples:
        >>> parse_email_address("Grace <grace@example.org>").name
        'Grace'
        >>> parse_email_address("ab@bc.com").name is None
        True
    """
    if value is None or not value.strip():
        raise ValidationError("Email address must not be empty")

    raw = value.strip()
    if _CONTROL_CHARS.search(raw):
        raise ValidationError(f"Email address contains control characters: {value!r}")

    display, address = parseaddr(raw)
    expected = raw[raw.rfind("<") + 1 : -1].strip() if raw.endswith(">") else raw
    if not address or address != expected:
        raise ValidationError(f"Invalid email address: {value!r}")

    _validate_mailbox(address)

    display_name = display if name is None else name
    return EmailAddress(address=address, name=display_name.strip() or None)


def normalize_address_list(values: Iterable[str | EmailAddress]) -> list[EmailAddress]:
    """Parse every address of *values*, preserving order and duplicates.

    Already parsed :class:`EmailAddress` entries are kept as they are.

    Raises:
        ValidationError: On the first malformed entry.
    """
    return [value if isinstance(value, EmailAddress) else parse_email_address(value) for value in values]
