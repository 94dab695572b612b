#!/usr/bin/env python
import logging
import os
from typing import Optional

from carddav import __version__

## Environmental variables prepended with "PYTHON_CARDDAV" are used for debug purposes,
## environmental variables prepended with "CARDDAV_" are for connection parameters
debug_dump_communication = os.environ.get("PYTHON_CARDDAV_COMMDUMP", False)
## one of DEBUG_PDB, DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_CARDDAV_DEBUGMODE")
if not debugmode:
    if "dev" in __version__ or __version__ == "(unknown)":
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("carddav")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def errmsg(r) -> str:
    """Utility for formatting an error response to an error string"""
    return "%s %s\n\n%s" % (r.status, r.reason, r.body[:500])


def weirdness(*reasons):
    from carddav.lib.debug import xmlstring

    reason = " : ".join([xmlstring(x) for x in reasons])
    log.warning(f"Deviation from expectations found: {reason}")
    if debugmode == "DEBUG_PDB":
        log.error(f"Dropping into debugger due to {reason}")
        import pdb

        pdb.set_trace()


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason
        super().__init__(url, reason)

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class TransportError(DAVError):
    """
    The request never produced a usable response: the connection
    failed, TLS failed, the request timed out, or the server answered
    with a status the protocol treats as fatal.  ``status`` holds the
    HTTP status code when there was one.
    """

    status: Optional[int] = None

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(url, reason)
        self.status = status


class AuthorizationError(TransportError):
    """
    The server answered 401 or 403 and no further authentication
    could be negotiated.  The url property will contain the url in
    question, the reason property will contain the excuse the server
    sent.
    """

    pass


class MalformedResponseError(DAVError):
    """
    The response body could not be turned into the expected
    multistatus structure.
    """

    pass


class MissingRequiredPropertyError(DAVError):
    """
    A property needed to make progress was absent from the response.
    """

    pass


class DateParseError(DAVError):
    pass


class NotFoundError(DAVError):
    pass


class ConflictError(DAVError):
    """
    The record changed on the server since its tag was read, or a
    record which should have been new already exists.
    """

    pass


class PutError(DAVError):
    pass


class DeleteError(DAVError):
    pass

