#!/usr/bin/env python
"""
The Card entity: one contact, identified by an id the caller picks,
carrying its vCard text and, once it has been on the server, its href,
etag and last modification time.
"""
import posixpath
import uuid
from datetime import datetime
from typing import Any
from typing import Optional
from urllib.parse import unquote

import vobject
from vobject.vcard import Name

from carddav.lib.python_utilities import to_normal_str
from carddav.protocol import RecordEnvelope
from carddav.protocol import Tag

VCARD_EXTENSION = ".vcf"


def id_from_href(href: str) -> str:
    """
    The record id is the last path segment of its href, without the
    .vcf extension.
    """
    name = posixpath.basename(unquote(href).rstrip("/"))
    if name.endswith(VCARD_EXTENSION):
        name = name[: -len(VCARD_EXTENSION)]
    return name


class Card:
    id: str = None
    href: Optional[str] = None
    etag: Optional[Tag] = None
    last_modified: Optional[datetime] = None

    _data: Optional[str] = None
    _vobject_instance: Any = None
    ## True when the vobject instance, not _data, is the source of truth
    _vobject_is_source: bool = False

    def __init__(
        self,
        id: str,
        data: Optional[str] = None,
        href: Optional[str] = None,
        etag: Optional[Tag] = None,
        last_modified: Optional[datetime] = None,
    ) -> None:
        self.id = id
        self.href = href
        self.etag = etag
        self.last_modified = last_modified
        self.data = data

    def __repr__(self) -> str:
        return "Card(id=%r, href=%r, etag=%r)" % (self.id, self.href, self.etag)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return (self.id, self.data, self.etag) == (other.id, other.data, other.etag)

    @classmethod
    def new(cls, fullname: str, id: Optional[str] = None, **fields) -> "Card":
        """
        Builds a minimal vCard 3.0 with a fresh UID.  Extra keyword
        arguments become single-valued vCard properties, i.e.
        ``email="alice@example.com"``.
        """
        id = id or str(uuid.uuid4())
        vcard = vobject.vCard()
        vcard.add("uid").value = id
        vcard.add("fn").value = fullname
        vcard.add("n").value = Name(given=fullname)
        for key, value in fields.items():
            vcard.add(key.replace("_", "-")).value = value
        card = cls(id=id)
        card.vobject_instance = vcard
        return card

    @classmethod
    def from_envelope(cls, href: str, envelope: RecordEnvelope) -> "Card":
        return cls(
            id=id_from_href(href),
            data=envelope.data,
            href=href,
            etag=envelope.tag,
            last_modified=envelope.last_modified,
        )

    def _get_data(self) -> Optional[str]:
        if self._vobject_is_source:
            self._data = to_normal_str(self._vobject_instance.serialize())
        return self._data

    def _set_data(self, data: Optional[str]) -> None:
        self._data = to_normal_str(data)
        self._vobject_instance = None
        self._vobject_is_source = False

    data: Optional[str] = property(
        _get_data, _set_data, doc="vCard text of the card"
    )

    def _get_vobject_instance(self) -> Any:
        if self._vobject_instance is None and self._data:
            self._vobject_instance = vobject.readOne(self._data)
        return self._vobject_instance

    def _set_vobject_instance(self, inst: Any) -> None:
        self._vobject_instance = inst
        self._data = None
        self._vobject_is_source = inst is not None

    vobject_instance: Any = property(
        _get_vobject_instance,
        _set_vobject_instance,
        doc="vobject representation of the card; parsed on first access.  An instance assigned here is serialized again on every read of data",
    )

    @property
    def fullname(self) -> Optional[str]:
        vcard = self.vobject_instance
        if vcard is None or not hasattr(vcard, "fn"):
            return None
        return vcard.fn.value

    @property
    def uid(self) -> Optional[str]:
        vcard = self.vobject_instance
        if vcard is None or not hasattr(vcard, "uid"):
            return None
        return vcard.uid.value
