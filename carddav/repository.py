#!/usr/bin/env python
"""
Card repositories.

``CardRepository`` is the five-operation contract callers program
against; ``RemoteCardRepository`` fulfils it on top of a CardDAV
collection.  Failures are raised as the errors of ``carddav.lib.error``:
NotFoundError for unknown ids, ConflictError when the server copy
changed since it was read (or already exists on create).
"""
import logging
from abc import ABC
from abc import abstractmethod
from typing import Dict
from typing import List
from typing import Optional

from carddav.card import Card
from carddav.card import VCARD_EXTENSION
from carddav.davclient import CardDAVClient
from carddav.lib import error
from carddav.protocol import Tag

log = logging.getLogger("carddav")


class CardRepository(ABC):
    @abstractmethod
    def create(self, card: Card) -> None:
        pass

    @abstractmethod
    def read(self, id: str) -> Card:
        pass

    @abstractmethod
    def read_all(self) -> List[Card]:
        pass

    @abstractmethod
    def update(self, card: Card) -> None:
        pass

    @abstractmethod
    def delete(self, id: str, etag: Optional[Tag] = None) -> None:
        pass


class RemoteCardRepository(CardRepository):
    """
    Cards stored in one address book collection on a CardDAV server.

    If no collection is given, it is found through the discovery chain
    on first use.  Cards listed by read_all or written through the
    repository are remembered under the href the server uses for them,
    which need not end in .vcf.  Any other id ``abc`` is looked up at
    ``<collection>/abc.vcf``.
    """

    def __init__(self, client: CardDAVClient, collection: Optional[str] = None) -> None:
        self.client = client
        self._collection = collection
        self._hrefs: Dict[str, str] = {}

    @property
    def collection(self) -> str:
        if self._collection is None:
            self._collection = self.client.discover()
        return self._collection

    def href_for(self, id: str) -> str:
        if id in self._hrefs:
            return self._hrefs[id]
        if "/" in id:
            raise ValueError(f"card id {id!r} contains a slash")
        collection = self.collection
        if not collection.endswith("/"):
            collection += "/"
        return collection + id + VCARD_EXTENSION

    def create(self, card: Card) -> None:
        """
        Uploads a new card.  Raises ConflictError if a record with the
        same id already exists.
        """
        if not card.data:
            raise error.PutError(reason=f"card {card.id} has no data")
        href = card.href or self.href_for(card.id)
        try:
            etag = self.client.put_record(href, card.data, create=True)
        except error.ConflictError as err:
            raise error.ConflictError(
                url=href, reason=f"card {card.id} already exists"
            ) from err
        card.href = href
        card.etag = etag
        self._hrefs[card.id] = href
        log.debug(f"created card {card.id} at {href}")

    def read(self, id: str) -> Card:
        href = self.href_for(id)
        data, etag = self.client.get_record(href)
        self._hrefs[id] = href
        return Card(id=id, data=data, href=href, etag=etag)

    def read_all(self) -> List[Card]:
        cards = [
            Card.from_envelope(href, envelope)
            for href, envelope in self.client.fetch_all_records(self.collection)
        ]
        for card in cards:
            self._hrefs[card.id] = card.href
        return cards

    def update(self, card: Card) -> None:
        """
        Overwrites the server copy of the card.  When the card carries an
        etag the server refuses the write (ConflictError) if somebody
        else changed the record since.
        """
        if not card.data:
            raise error.PutError(reason=f"card {card.id} has no data")
        href = card.href or self.href_for(card.id)
        card.etag = self.client.put_record(href, card.data, etag=card.etag)
        card.href = href
        self._hrefs[card.id] = href
        log.debug(f"updated card {card.id} at {href}")

    def delete(self, id: str, etag: Optional[Tag] = None) -> None:
        self.client.delete_record(self.href_for(id), etag=etag)
        self._hrefs.pop(id, None)
        log.debug(f"deleted card {id}")
