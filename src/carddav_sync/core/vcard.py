"""vCard <-> ``Contact`` translation built on ``vobject``."""

from __future__ import annotations

import datetime
import logging
from typing import Any

import vobject
from pydantic import ValidationError

from ..sync.fields import flatten_value, normalize_birthday, to_remote_contact
from ..sync.models import Contact

logger = logging.getLogger(__name__)

# vobject Address attribute order, as in the ADR property
_ADDRESS_PARTS = ("box", "extended", "street", "city", "region", "code", "country")


def _first_value(card: Any, name: str) -> Any:
    prop = getattr(card, name, None)
    return prop.value if prop is not None else None


def _format_address(value: Any) -> str:
    if isinstance(value, vobject.vcard.Address):
        return flatten_value([getattr(value, part, "") for part in _ADDRESS_PARTS])
    return flatten_value(value)


def _format_birthday(value: Any) -> str:
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.strftime("%Y-%m-%d")
    return normalize_birthday(flatten_value(value))


def parse_vcard(data: str) -> Contact | None:
    """Parse one vCard into a ``Contact``.

    Returns ``None`` (and logs why) when the text is not a parseable vCard
    or lacks ``UID``/``FN``; such records are dropped from the snapshot.
    """
    try:
        card = vobject.readOne(data)
    except Exception as exc:
        logger.warning("Dropping unparseable vCard: %s", exc)
        logger.debug("Raw vCard data: %r", data)
        return None

    try:
        return Contact(
            uid=flatten_value(_first_value(card, "uid")),
            full_name=flatten_value(_first_value(card, "fn")),
            email=flatten_value(_first_value(card, "email")),
            phone=flatten_value(_first_value(card, "tel")),
            organization=flatten_value(_first_value(card, "org")),
            title=flatten_value(_first_value(card, "title")),
            address=_format_address(_first_value(card, "adr")),
            birthday=_format_birthday(_first_value(card, "bday")),
            url=flatten_value(_first_value(card, "url")),
        )
    except ValidationError:
        logger.warning("Dropping vCard without UID or FN")
        return None


def build_vcard(contact: Contact) -> str:
    """Serialize the remote-bound fields of *contact* as a vCard 3.0.

    Only UID, FN, N, EMAIL and TEL are written; the other fields are not
    pushed to the server.
    """
    narrow = to_remote_contact(contact)

    card = vobject.vCard()
    card.add("version").value = "3.0"
    card.add("uid").value = narrow.uid
    card.add("fn").value = narrow.full_name

    given, _, family = narrow.full_name.strip().rpartition(" ")
    card.add("n").value = vobject.vcard.Name(family=family, given=given)

    if narrow.email:
        card.add("email").value = narrow.email
    if narrow.phone:
        card.add("tel").value = narrow.phone
    return card.serialize()
