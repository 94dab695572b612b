"""
Sans-I/O CardDAV protocol implementation.

This module provides protocol-level operations without any I/O.
It builds requests and parses responses as pure data transformations.

The protocol layer is organized into:
- types: Core data structures (DAVRequest, DAVResponse, multistatus model)
- properties: Property payload shapes the multistatus parser is generic over
- xml_builders: Pure functions to build XML request bodies
- xml_parsers: Pure functions to parse XML response bodies
- operations: High-level CardDAVProtocol class combining builders and parsers

Example usage:

    from carddav.protocol import CardDAVProtocol

    protocol = CardDAVProtocol(host="https://dav.example.com")

    # Build a request (no I/O)
    request = protocol.ctag_request("/addressbooks/alice/contacts/")

    # Execute via your preferred I/O (sync or mock)
    response = your_http_client.execute(request)

    # Interpret the response (no I/O)
    ctag = protocol.find_ctag(response)
"""

from .types import (
    # Enums
    DAVMethod,
    # Request/Response
    DAVRequest,
    DAVResponse,
    # Multistatus model
    ChangeTag,
    MultiStatus,
    PropStat,
    RecordEnvelope,
    RecordTag,
    ResponseEntry,
    Tag,
)
from .properties import (
    AddressbookHomeSetProp,
    AddressDataProp,
    CtagProp,
    CurrentUserPrincipalProp,
    ResourceTypeProp,
    format_http_date,
    parse_http_date,
)
from .xml_builders import (
    build_addressbook_home_set_body,
    build_addressbook_query_body,
    build_ctag_body,
    build_current_user_principal_body,
    build_propfind_body,
    build_resourcetype_body,
)
from .xml_parsers import is_ok_status, parse_multistatus
from .operations import CardDAVProtocol

__all__ = [
    # Enums
    "DAVMethod",
    # Request/Response
    "DAVRequest",
    "DAVResponse",
    # Multistatus model
    "ChangeTag",
    "MultiStatus",
    "PropStat",
    "RecordEnvelope",
    "RecordTag",
    "ResponseEntry",
    "Tag",
    # Payload shapes
    "AddressbookHomeSetProp",
    "AddressDataProp",
    "CtagProp",
    "CurrentUserPrincipalProp",
    "ResourceTypeProp",
    "format_http_date",
    "parse_http_date",
    # XML Builders
    "build_addressbook_home_set_body",
    "build_addressbook_query_body",
    "build_ctag_body",
    "build_current_user_principal_body",
    "build_propfind_body",
    "build_resourcetype_body",
    # XML Parsers
    "is_ok_status",
    "parse_multistatus",
    # Protocol
    "CardDAVProtocol",
]
