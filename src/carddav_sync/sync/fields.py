"""Field translation between ``Contact`` and the note header.

The two sync directions carry different field sets:

- remote -> local writes every known field (``LOCAL_FIELDS``);
- local -> remote carries only ``uid``, ``full_name``, ``email`` and
  ``phone`` (``REMOTE_FIELDS``).
"""

from __future__ import annotations

import re
from typing import Any

from .models import Contact

CONTACT_TAG = "contact"

# Header key -> Contact attribute
HEADER_KEYS: dict[str, str] = {
    "uid": "uid",
    "fullName": "full_name",
    "email": "email",
    "phone": "phone",
    "organization": "organization",
    "title": "title",
    "address": "address",
    "birthday": "birthday",
    "url": "url",
}

# Header keys rewritten when a remote contact updates an existing note
LOCAL_FIELDS: tuple[str, ...] = (
    "fullName",
    "email",
    "phone",
    "organization",
    "title",
    "address",
    "birthday",
    "url",
)

# Header layout of a newly created note
CREATE_ORDER: tuple[str, ...] = ("uid", "tags", *LOCAL_FIELDS)

REMOTE_FIELDS: tuple[str, ...] = ("uid", "full_name", "email", "phone")

_FULL_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_BASIC_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_NO_YEAR = re.compile(r"^--(\d{2})-?(\d{2})$")


def normalize_birthday(value: str) -> str:
    """Normalize a vCard ``BDAY`` value.

    ``1990-06-15`` and ``19900615`` become ``1990-06-15``; ``--06-15`` and
    ``--0615`` (no year) become ``xxxx-06-15``.  A time part is dropped.
    Values in any other shape are returned stripped but otherwise as-is.
    """
    value = value.strip()
    if not value:
        return ""

    date_part = value.split("T", 1)[0]

    if _FULL_DATE.match(date_part):
        return date_part

    match = _BASIC_DATE.match(date_part)
    if match:
        return "-".join(match.groups())

    match = _NO_YEAR.match(date_part)
    if match:
        return f"xxxx-{match.group(1)}-{match.group(2)}"

    return value


def flatten_value(value: Any) -> str:
    """Collapse a header or vCard value into a single string.

    Lists keep their non-empty items joined with ``", "``; mappings have
    no flat representation and become ``""``.
    """
    if value is None or isinstance(value, dict):
        return ""
    if isinstance(value, (list, tuple)):
        parts = [flatten_value(v) for v in value]
        return ", ".join(p for p in parts if p)
    return str(value).strip()


def has_contact_tag(tags: Any) -> bool:
    """Whether a ``tags`` header value marks the note as a contact.

    Accepts ``contact``, ``#contact``, ``contact, friend``, ``contact friend``
    and YAML lists of such values.
    """
    if tags is None or isinstance(tags, dict):
        return False
    if isinstance(tags, (list, tuple)):
        return any(has_contact_tag(t) for t in tags)
    names = re.split(r"[,\s]+", str(tags))
    return CONTACT_TAG in (n.lstrip("#") for n in names)


def contact_from_header(header: dict[str, Any]) -> Contact:
    """Project note header fields into a ``Contact``.

    Raises:
        pydantic.ValidationError: If ``uid`` or ``fullName`` is missing.
    """
    values = {
        attr: flatten_value(header.get(key))
        for key, attr in HEADER_KEYS.items()
    }
    return Contact(**values)


def header_values(contact: Contact) -> dict[str, str]:
    """Header key -> value for every known field of *contact*."""
    values = {
        key: getattr(contact, attr) for key, attr in HEADER_KEYS.items()
    }
    values["tags"] = CONTACT_TAG
    return values


def to_remote_contact(contact: Contact) -> Contact:
    """Narrow a local contact to the fields pushed to the server."""
    return Contact(**{name: getattr(contact, name) for name in REMOTE_FIELDS})
