"""
Pure functions for parsing CardDAV XML responses.

All functions in this module are pure - they take XML bytes in and return
structured data out, with no side effects or I/O.
"""

import logging
from typing import Type, TypeVar
from urllib.parse import unquote

from lxml import etree
from lxml.etree import _Element

from carddav.elements import dav
from carddav.lib import error
from carddav.lib.url import URL

from .properties import PropertyShape
from .types import MultiStatus, PropStat, ResponseEntry

log = logging.getLogger(__name__)

P = TypeVar("P", bound=PropertyShape)


def parse_multistatus(
    body: bytes,
    shape: Type[P],
    huge_tree: bool = False,
) -> MultiStatus[P]:
    """
    Parse a 207 Multi-Status response body.

    Args:
        body: Raw XML response bytes
        shape: Property payload class; its ``from_prop`` builds the
               payload of each entry from the DAV:prop element
        huge_tree: Allow parsing very large XML documents

    Returns:
        MultiStatus with one entry per DAV:response, in document order.
        A multistatus without any response elements gives an empty
        MultiStatus.

    Raises:
        MalformedResponseError: If body is not XML, is not a multistatus
            document, or a response element has no href
    """
    if not body or not body.strip():
        raise error.MalformedResponseError(reason="empty response body")

    parser = etree.XMLParser(huge_tree=huge_tree)
    try:
        tree = etree.fromstring(body, parser)
    except etree.XMLSyntaxError as err:
        raise error.MalformedResponseError(reason=f"invalid XML: {err}") from err

    responses: list[ResponseEntry[P]] = []
    for elem in _strip_to_multistatus(tree):
        if elem.tag != dav.Response.tag:
            continue
        href, propstat_elem, status = _parse_response_element(elem)
        prop = None
        if propstat_elem is not None:
            prop = propstat_elem.find(dav.Prop.tag)
            propstat_status = propstat_elem.find(dav.Status.tag)
            if propstat_status is not None and propstat_status.text:
                status = propstat_status.text.strip()
        responses.append(
            ResponseEntry(
                href=href,
                propstat=PropStat(properties=shape.from_prop(prop), status=status),
            )
        )

    log.debug("parsed %i response(s) into %s", len(responses), shape.__name__)
    return MultiStatus(responses=responses)


# Helper functions


def _strip_to_multistatus(tree: _Element) -> _Element:
    """
    Strip outer elements to get to the multistatus content.

    The general format is:
        <multistatus>
            <response>...</response>
            <response>...</response>
        </multistatus>

    Some servers wrap it all in an extra xml element.
    """
    if tree.tag == "xml" and len(tree) > 0 and tree[0].tag == dav.MultiStatus.tag:
        return tree[0]
    if tree.tag == dav.MultiStatus.tag:
        return tree
    raise error.MalformedResponseError(
        reason=f"expected a multistatus document, got {tree.tag}"
    )


def _parse_response_element(
    response: _Element,
) -> tuple[str, _Element | None, str | None]:
    """
    Parse a single DAV:response element.

    When the response carries several propstats (servers put found and
    missing properties in separate ones) the first one with a 2xx status
    is used, falling back to the first one.

    Returns:
        Tuple of (href, propstat element or None, response level status)
    """
    status: str | None = None
    href: str | None = None
    propstats: list[_Element] = []

    for elem in response:
        if elem.tag == dav.Status.tag:
            status = elem.text.strip() if elem.text else None
        elif elem.tag == dav.Href.tag:
            href = _normalize_href(elem.text or "")
        elif elem.tag == dav.PropStat.tag:
            propstats.append(elem)

    if not href:
        raise error.MalformedResponseError(reason="response element without href")

    chosen = propstats[0] if propstats else None
    for propstat in propstats:
        if is_success_class(propstat.findtext(dav.Status.tag)):
            chosen = propstat
            break

    return (href, chosen, status)


def _normalize_href(text: str) -> str:
    text = text.strip()
    # Fix for double-encoded URLs
    if "%2540" in text:
        text = text.replace("%2540", "%40")
    href = unquote(text)
    # Convert absolute URLs to paths
    if "://" in href:
        href = unquote(URL(text).path) or "/"
    return href


def is_success_class(status: str | None) -> bool:
    """True for a status line with any 2xx code, like "HTTP/1.1 207 Multi-Status"."""
    if not status:
        return False
    parts = status.split()
    return len(parts) >= 2 and parts[1].startswith("2") and len(parts[1]) == 3


def is_ok_status(status: str | None) -> bool:
    """
    True when the status line ends with "200 OK".

    The match is an exact, case sensitive suffix match; a missing
    status never counts as success.
    """
    return status is not None and status.endswith("200 OK")
