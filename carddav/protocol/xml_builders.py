"""
Pure functions for building CardDAV XML request bodies.

Every discovery and sync step sends one fixed body; the functions here
build them from the element classes in ``carddav.elements``.
"""
from typing import List

from lxml import etree

from carddav.elements import cdav
from carddav.elements import cs
from carddav.elements import dav
from carddav.elements.base import BaseElement


def _tostring(root: BaseElement) -> bytes:
    return etree.tostring(root.xmlelement(), encoding="utf-8", xml_declaration=True)


def build_propfind_body(props: List[BaseElement]) -> bytes:
    """
    Build a PROPFIND request body asking for the given properties.

    Args:
        props: Empty property elements, e.g. ``[dav.ResourceType()]``

    Returns:
        UTF-8 encoded XML bytes
    """
    return _tostring(dav.Propfind() + (dav.Prop() + props))


def build_current_user_principal_body() -> bytes:
    return build_propfind_body([dav.CurrentUserPrincipal()])


def build_addressbook_home_set_body() -> bytes:
    return build_propfind_body([cdav.AddressbookHomeSet()])


def build_resourcetype_body() -> bytes:
    return build_propfind_body([dav.ResourceType()])


def build_ctag_body() -> bytes:
    return build_propfind_body([cs.GetCtag()])


def build_addressbook_query_body() -> bytes:
    """
    Build an addressbook-query REPORT body asking for the full vCard,
    the etag and the last modification time of every record in the
    collection.  The filter element is mandatory but empty, so it
    matches all records.
    """
    prop = dav.Prop() + [
        dav.GetEtag(),
        dav.GetLastModified(),
        cdav.AddressData(),
    ]
    return _tostring(cdav.AddressbookQuery() + [prop, cdav.Filter()])
