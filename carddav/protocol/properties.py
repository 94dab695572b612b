"""
Property payload shapes.

Each class describes what one kind of request expects inside the
DAV:prop element of every response entry, and knows how to build itself
from that element.  The multistatus parser is generic over these shapes
(see ``xml_parsers.parse_multistatus``); nothing else in the package
looks inside a DAV:prop element.

Optional parts of a payload come out as None when the server left them
out.  Parts that cannot be absent raise MalformedResponseError.
"""

import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional, Protocol

from lxml.etree import _Element

from carddav.elements import cdav, cs, dav
from carddav.lib import error

from .types import Tag

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self


class PropertyShape(Protocol):
    """Anything the multistatus parser can build from a DAV:prop element."""

    @classmethod
    def from_prop(cls, prop: Optional[_Element]) -> Self: ...


def parse_http_date(value: Optional[str]) -> datetime:
    """
    Parse an RFC 2822 style date, as used by DAV:getlastmodified.

    Raises DateParseError rather than guessing when the value is not a
    valid date.  Dates without zone information are taken as UTC.
    """
    if not value or not value.strip():
        raise error.DateParseError(reason="empty last-modified date")
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError) as err:
        raise error.DateParseError(reason=f"invalid date {value!r}: {err}") from err
    if parsed is None:
        raise error.DateParseError(reason=f"invalid date {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_http_date(value: datetime) -> str:
    """Format a datetime the way servers send DAV:getlastmodified."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def _child(prop: Optional[_Element], tag: str) -> Optional[_Element]:
    if prop is None:
        return None
    return prop.find(tag)


def _href_of(elem: Optional[_Element]) -> Optional[str]:
    if elem is None:
        return None
    href = elem.find(dav.Href.tag)
    if href is None or not href.text or not href.text.strip():
        return None
    return href.text.strip()


def _required_text(prop: Optional[_Element], tag: str) -> str:
    elem = _child(prop, tag)
    if elem is None:
        raise error.MalformedResponseError(reason=f"missing {tag} in response")
    return elem.text or ""


@dataclass
class CurrentUserPrincipalProp:
    href: Optional[str] = None

    @classmethod
    def from_prop(cls, prop: Optional[_Element]) -> "CurrentUserPrincipalProp":
        return cls(href=_href_of(_child(prop, dav.CurrentUserPrincipal.tag)))


@dataclass
class AddressbookHomeSetProp:
    href: Optional[str] = None

    @classmethod
    def from_prop(cls, prop: Optional[_Element]) -> "AddressbookHomeSetProp":
        return cls(href=_href_of(_child(prop, cdav.AddressbookHomeSet.tag)))


@dataclass
class ResourceTypeProp:
    """
    Only the presence of the C:addressbook marker inside
    DAV:resourcetype matters, not its content.
    """

    is_addressbook: bool = False

    @classmethod
    def from_prop(cls, prop: Optional[_Element]) -> "ResourceTypeProp":
        resourcetype = _child(prop, dav.ResourceType.tag)
        if resourcetype is None:
            return cls()
        return cls(
            is_addressbook=resourcetype.find(cdav.Addressbook.tag) is not None,
        )


@dataclass
class CtagProp:
    ctag: Optional[Tag] = None

    @classmethod
    def from_prop(cls, prop: Optional[_Element]) -> "CtagProp":
        elem = _child(prop, cs.GetCtag.tag)
        if elem is None or elem.text is None:
            return cls()
        return cls(ctag=Tag(elem.text))


@dataclass
class AddressDataProp:
    """Full record data plus the per-record tag and modification time."""

    address_data: str
    etag: Tag
    last_modified: datetime

    @classmethod
    def from_prop(cls, prop: Optional[_Element]) -> "AddressDataProp":
        return cls(
            address_data=_required_text(prop, cdav.AddressData.tag),
            etag=Tag(_required_text(prop, dav.GetEtag.tag)),
            last_modified=parse_http_date(
                _required_text(prop, dav.GetLastModified.tag)
            ),
        )
