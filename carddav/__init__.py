#!/usr/bin/env python
import logging

__version__ = "0.1.0"

from .davclient import CardDAVClient
from .davclient import get_davclient
from .card import Card
from .repository import CardRepository
from .repository import RemoteCardRepository
from .sync import SyncResult
from .sync import SyncState
from .sync import Synchronizer

# Silence notification of no default logging handler
log = logging.getLogger("carddav")
log.addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "Card",
    "CardDAVClient",
    "CardRepository",
    "RemoteCardRepository",
    "SyncResult",
    "SyncState",
    "Synchronizer",
    "get_davclient",
]
