"""
I/O layer for the CardDAV protocol.

This module provides the implementation for executing DAVRequest objects
and returning DAVResponse objects.

The I/O layer is intentionally thin - it only handles HTTP transport.
All protocol logic (XML building/parsing) is in carddav.protocol.

Example:
    from carddav.protocol import CardDAVProtocol
    from carddav.io import SyncIO

    protocol = CardDAVProtocol(host="https://dav.example.com")
    with SyncIO() as io:
        request = protocol.current_user_principal_request("/")
        response = io.execute(request)
        principal = protocol.find_current_user_principal(response)
"""

from .base import SyncIOProtocol
from .sync import SyncIO

__all__ = [
    "SyncIOProtocol",
    "SyncIO",
]
