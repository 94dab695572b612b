#!/usr/bin/env python
"""
One sync cycle against one address book collection.

The cycle runs discovery, compares the collection ctag with the one in
the local store, and only when they differ fetches all records,
reconciles them against the record tags in the store and commits the
result together with the new ctag.  The store sees a single ``commit``
call at the very end, so a cycle that fails or is abandoned before that
leaves the stored ctag and records as they were.

There are no retries here; a failed cycle re-raises the error that
ended it.  Two cycles against the same store and collection must not
run at the same time.
"""
import logging
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Dict
from typing import List
from typing import Optional
from typing import Protocol

from carddav.card import Card
from carddav.davclient import CardDAVClient
from carddav.protocol import Tag

log = logging.getLogger("carddav")


class SyncState(Enum):
    IDLE = "idle"
    DISCOVERY_IN_FLIGHT = "discovery-in-flight"
    CHANGE_CHECK = "change-check"
    UP_TO_DATE = "up-to-date"
    RECORDS_FETCHING = "records-fetching"
    RECONCILING = "reconciling"
    PERSISTED = "persisted"
    FAILED = "failed"


@dataclass
class Changeset:
    """
    Everything a store has to apply to move a collection to ``ctag``:
    cards to insert or replace, keyed by href, and hrefs to remove.
    """

    ctag: Tag
    upserts: Dict[str, Card] = field(default_factory=dict)
    deletions: List[str] = field(default_factory=list)


class LocalStore(Protocol):
    def get_ctag(self, collection: str) -> Optional[Tag]:
        """The ctag stored by the last successful sync, if any."""
        ...

    def get_record_tags(self, collection: str) -> Dict[str, Tag]:
        """The etag of every stored record, keyed by href."""
        ...

    def commit(self, collection: str, changeset: Changeset) -> None:
        """Apply the changeset and store its ctag, all or nothing."""
        ...


@dataclass
class SyncResult:
    state: SyncState
    collection: str
    ctag: Tag
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    unchanged: int = 0
    record_fetches: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.deleted)


def reconcile(
    fetched: Dict[str, Card], local_tags: Dict[str, Tag], ctag: Tag
) -> Changeset:
    """
    Diff fetched cards against stored record tags.  Records are matched
    by href; a record whose etag is unchanged is left alone.
    """
    changeset = Changeset(ctag=ctag)
    for href, card in fetched.items():
        if local_tags.get(href) != card.etag:
            changeset.upserts[href] = card
    changeset.deletions = [href for href in local_tags if href not in fetched]
    return changeset


class Synchronizer:
    """
    Runs sync cycles for one collection.

    Args:
        client: CardDAVClient used for all requests
        store: Local store holding the ctag and the records
        path: Where discovery starts (defaults to the client url path)
        collection: Address book path; when given, discovery is skipped
    """

    state: SyncState = SyncState.IDLE
    ## the state the last failed cycle was in when it failed
    failed_in: Optional[SyncState] = None

    def __init__(
        self,
        client: CardDAVClient,
        store: LocalStore,
        path: Optional[str] = None,
        collection: Optional[str] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.path = path
        self.collection = collection

    def _enter(self, state: SyncState) -> None:
        log.debug(f"sync: {self.state.value} -> {state.value}")
        self.state = state

    def run(self) -> SyncResult:
        self.state = SyncState.IDLE
        self.failed_in = None
        try:
            return self._run()
        except BaseException:
            self.failed_in = self.state
            self._enter(SyncState.FAILED)
            raise

    def _run(self) -> SyncResult:
        self._enter(SyncState.DISCOVERY_IN_FLIGHT)
        collection = self.collection or self.client.discover(self.path)

        self._enter(SyncState.CHANGE_CHECK)
        ctag = self.client.fetch_ctag(collection)
        if ctag == self.store.get_ctag(collection):
            self._enter(SyncState.UP_TO_DATE)
            log.info(f"{collection} is up to date (ctag {ctag})")
            return SyncResult(state=self.state, collection=collection, ctag=ctag)

        self._enter(SyncState.RECORDS_FETCHING)
        records = self.client.fetch_all_records(collection)
        fetched = {href: Card.from_envelope(href, envelope) for href, envelope in records}

        self._enter(SyncState.RECONCILING)
        local_tags = self.store.get_record_tags(collection)
        changeset = reconcile(fetched, local_tags, ctag)
        self.store.commit(collection, changeset)

        self._enter(SyncState.PERSISTED)
        result = SyncResult(
            state=self.state,
            collection=collection,
            ctag=ctag,
            created=[href for href in changeset.upserts if href not in local_tags],
            updated=[href for href in changeset.upserts if href in local_tags],
            deleted=list(changeset.deletions),
            unchanged=len(fetched) - len(changeset.upserts),
            record_fetches=1,
        )
        log.info(
            f"{collection} synced to ctag {ctag}: {len(result.created)} created, "
            f"{len(result.updated)} updated, {len(result.deleted)} deleted"
        )
        return result
