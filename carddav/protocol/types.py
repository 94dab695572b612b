"""
Core protocol types for the Sans-I/O CardDAV implementation.

These dataclasses represent HTTP requests and responses at the protocol level,
independent of any I/O implementation, plus the generic multistatus model
that every property-fetch and bulk-data response is parsed into.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, Mapping, TypeVar


class DAVMethod(Enum):
    """WebDAV/CardDAV HTTP methods."""

    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    PROPFIND = "PROPFIND"
    REPORT = "REPORT"


@dataclass(frozen=True)
class DAVRequest:
    """
    Represents an HTTP request to be made.

    This is a pure data structure with no I/O. It describes what request
    should be made, but does not make it.

    Attributes:
        method: HTTP method (GET, PUT, PROPFIND, etc.)
        url: Full URL for the request
        headers: HTTP headers as dict
        body: Request body as bytes (optional)
    """

    method: DAVMethod
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None


@dataclass(frozen=True)
class DAVResponse:
    """
    Represents an HTTP response received.

    Attributes:
        status: HTTP status code
        headers: HTTP headers, looked up case-insensitively by the I/O layer
        body: Response body as bytes
        reason: Reason phrase sent by the server, if any
    """

    status: int
    headers: Mapping[str, str]
    body: bytes
    reason: str = ""

    @property
    def ok(self) -> bool:
        """True if status indicates success (2xx)."""
        return 200 <= self.status < 300


@dataclass(frozen=True)
class Tag:
    """
    Opaque version token (a collection ctag or a record etag).

    Tags are stored and compared verbatim; they have no ordering and
    carry no meaning beyond equality.
    """

    value: str

    def __str__(self) -> str:
        return self.value


## Collection-level and record-level tokens are both opaque strings
ChangeTag = Tag
RecordTag = Tag


P = TypeVar("P")


@dataclass
class PropStat(Generic[P]):
    """
    The property payload of one resource and the status the server
    reported for it.  ``status`` is the raw status line
    (e.g. "HTTP/1.1 200 OK") or None when the server sent none.
    """

    properties: P
    status: str | None = None


@dataclass
class ResponseEntry(Generic[P]):
    """One DAV:response element: the resource href and its propstat."""

    href: str
    propstat: PropStat[P]

    @property
    def status(self) -> str | None:
        return self.propstat.status

    @property
    def properties(self) -> P:
        return self.propstat.properties


@dataclass
class MultiStatus(Generic[P]):
    """
    Parsed 207 Multi-Status body, with the entries in the order the
    server sent them.
    """

    responses: list[ResponseEntry[P]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.responses)

    def __iter__(self):
        return iter(self.responses)

    def first(self) -> ResponseEntry[P] | None:
        return self.responses[0] if self.responses else None


@dataclass(frozen=True)
class RecordEnvelope:
    """
    A record as returned by the bulk-data request: the raw vCard text,
    its tag and its last modification time (timezone aware).
    """

    data: str
    tag: Tag
    last_modified: datetime
