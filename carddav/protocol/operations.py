"""
CardDAV protocol operations combining request building and response parsing.

This class provides a high-level interface to CardDAV operations while
remaining completely I/O-free.
"""

import logging
from typing import Dict, List, Optional, Tuple, Type, TypeVar

from carddav.lib import error
from carddav.lib.url import quote_path
from carddav.lib.url import URL

from .properties import (
    AddressbookHomeSetProp,
    AddressDataProp,
    CtagProp,
    CurrentUserPrincipalProp,
    PropertyShape,
    ResourceTypeProp,
)
from .types import DAVMethod, DAVRequest, DAVResponse, MultiStatus, RecordEnvelope, Tag
from .xml_builders import (
    build_addressbook_home_set_body,
    build_addressbook_query_body,
    build_ctag_body,
    build_current_user_principal_body,
    build_resourcetype_body,
)
from .xml_parsers import is_ok_status, parse_multistatus

log = logging.getLogger(__name__)

P = TypeVar("P", bound=PropertyShape)

VCARD_CONTENT_TYPE = "text/vcard; charset=utf-8"


class CardDAVProtocol:
    """
    Sans-I/O CardDAV protocol handler.

    Builds requests and interprets responses without doing any I/O.
    All HTTP communication is delegated to an external I/O implementation.

    Example:
        protocol = CardDAVProtocol(host="https://dav.example.com")

        # Build request
        request = protocol.current_user_principal_request("/")

        # Execute with your I/O (not shown)
        response = io.execute(request)

        # Interpret response
        principal = protocol.find_current_user_principal(response)
    """

    def __init__(
        self,
        host: str = "",
        huge_tree: bool = False,
        addressbook_depth: str = "1",
    ):
        """
        Args:
            host: Scheme and authority of the server, optionally with a
                  base path, e.g. ``https://dav.example.com``
            huge_tree: Allow parsing very large XML documents
            addressbook_depth: Depth header of the address book listing
        """
        self.host = URL.objectify(host) if host else URL("")
        self.huge_tree = huge_tree
        self.addressbook_depth = addressbook_depth

    def _base_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/xml; charset=utf-8",
        }

    def resolve_url(self, path: str) -> str:
        """
        Join the host with a path or return an absolute URL as is.
        Paths are unquoted hrefs and get escaped for the wire here.
        """
        if not path:
            return str(self.host)
        if "://" in path:
            return str(self.host.join(path))
        return str(self.host.join(quote_path(path)))

    def _propfind(self, path: str, body: bytes, depth: str) -> DAVRequest:
        return DAVRequest(
            method=DAVMethod.PROPFIND,
            url=self.resolve_url(path),
            headers={**self._base_headers(), "Depth": depth},
            body=body,
        )

    # =========================================================================
    # Request builders
    # =========================================================================

    def current_user_principal_request(self, path: str) -> DAVRequest:
        return self._propfind(path, build_current_user_principal_body(), "0")

    def addressbook_home_set_request(self, path: str) -> DAVRequest:
        return self._propfind(path, build_addressbook_home_set_body(), "0")

    def addressbook_request(self, path: str) -> DAVRequest:
        """
        List resource types under ``path`` so address book collections
        can be told apart from other collections.
        """
        return self._propfind(path, build_resourcetype_body(), self.addressbook_depth)

    def ctag_request(self, path: str) -> DAVRequest:
        return self._propfind(path, build_ctag_body(), "0")

    def address_data_request(self, path: str) -> DAVRequest:
        return DAVRequest(
            method=DAVMethod.REPORT,
            url=self.resolve_url(path),
            headers={**self._base_headers(), "Depth": "1"},
            body=build_addressbook_query_body(),
        )

    def get_request(self, href: str) -> DAVRequest:
        return DAVRequest(
            method=DAVMethod.GET,
            url=self.resolve_url(href),
            headers={"Accept": "text/vcard"},
        )

    def put_request(
        self,
        href: str,
        data: str,
        etag: Optional[Tag] = None,
        create: bool = False,
    ) -> DAVRequest:
        """
        Build a PUT request writing a vCard.

        Args:
            href: Record path or URL
            data: vCard text
            etag: Current record tag; the write only succeeds if the
                  server still holds that version
            create: Only succeed if the record does not exist yet
        """
        headers = {"Content-Type": VCARD_CONTENT_TYPE}
        if create:
            headers["If-None-Match"] = "*"
        elif etag is not None:
            headers["If-Match"] = etag.value
        return DAVRequest(
            method=DAVMethod.PUT,
            url=self.resolve_url(href),
            headers=headers,
            body=data.encode("utf-8"),
        )

    def delete_request(self, href: str, etag: Optional[Tag] = None) -> DAVRequest:
        headers = {}
        if etag is not None:
            headers["If-Match"] = etag.value
        return DAVRequest(
            method=DAVMethod.DELETE,
            url=self.resolve_url(href),
            headers=headers,
        )

    # =========================================================================
    # Response interpretation
    # =========================================================================

    def check_response(self, request: DAVRequest, response: DAVResponse) -> None:
        """
        Raise the matching error for a response the protocol can't use.

        404 on a record and 412 are mapped to NotFoundError and
        ConflictError; any other non-2xx status is a transport failure.
        """
        if response.ok:
            return
        reason = "%s %s" % (response.status, response.reason or "")
        if response.status in (401, 403):
            raise error.AuthorizationError(
                url=request.url, reason=reason.strip(), status=response.status
            )
        if response.status == 404 and request.method in (
            DAVMethod.GET,
            DAVMethod.DELETE,
        ):
            raise error.NotFoundError(url=request.url, reason=reason.strip())
        if response.status == 412:
            raise error.ConflictError(url=request.url, reason=reason.strip())
        if request.method == DAVMethod.PUT:
            raise error.PutError(url=request.url, reason=error.errmsg(response))
        if request.method == DAVMethod.DELETE:
            raise error.DeleteError(url=request.url, reason=error.errmsg(response))
        raise error.TransportError(
            url=request.url, reason=reason.strip(), status=response.status
        )

    def parse(self, response: DAVResponse, shape: Type[P]) -> MultiStatus[P]:
        return parse_multistatus(response.body, shape, huge_tree=self.huge_tree)

    def find_current_user_principal(self, response: DAVResponse) -> Optional[str]:
        """The href of the first entry, or None if the server sent none."""
        first = self.parse(response, CurrentUserPrincipalProp).first()
        return first.properties.href if first else None

    def find_addressbook_home_set(self, response: DAVResponse) -> Optional[str]:
        first = self.parse(response, AddressbookHomeSetProp).first()
        return first.properties.href if first else None

    def find_addressbook(self, response: DAVResponse) -> Optional[str]:
        """
        The href of the first entry that both has a "200 OK" status and
        is marked as an address book, or None.
        """
        for entry in self.parse(response, ResourceTypeProp):
            if is_ok_status(entry.status) and entry.properties.is_addressbook:
                return entry.href
        return None

    def find_ctag(self, response: DAVResponse) -> Optional[Tag]:
        first = self.parse(response, CtagProp).first()
        return first.properties.ctag if first else None

    def parse_address_data(
        self, response: DAVResponse
    ) -> List[Tuple[str, RecordEnvelope]]:
        """
        Pair every record href with its envelope.  One bad record fails
        the whole response.
        """
        return [
            (
                entry.href,
                RecordEnvelope(
                    data=entry.properties.address_data,
                    tag=entry.properties.etag,
                    last_modified=entry.properties.last_modified,
                ),
            )
            for entry in self.parse(response, AddressDataProp)
        ]

    def etag_from_headers(self, response: DAVResponse) -> Optional[Tag]:
        for name, value in response.headers.items():
            if name.lower() == "etag" and value:
                return Tag(value)
        return None
