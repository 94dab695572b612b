#!/usr/bin/env python
"""
Local stores for ``carddav.sync``: one in memory, one in a JSON file.

Both keep, per collection, the ctag of the last successful sync and
every record keyed by href.
"""
import json
import logging
import os
import tempfile
from datetime import datetime
from typing import Dict
from typing import List
from typing import Optional

from carddav.card import Card
from carddav.protocol import Tag
from carddav.sync import Changeset

log = logging.getLogger("carddav")


class MemoryStore:
    def __init__(self) -> None:
        self.ctags: Dict[str, Tag] = {}
        self.records: Dict[str, Dict[str, Card]] = {}

    def get_ctag(self, collection: str) -> Optional[Tag]:
        return self.ctags.get(collection)

    def get_record_tags(self, collection: str) -> Dict[str, Tag]:
        return {
            href: card.etag for href, card in self.records.get(collection, {}).items()
        }

    def cards(self, collection: str) -> List[Card]:
        return list(self.records.get(collection, {}).values())

    def commit(self, collection: str, changeset: Changeset) -> None:
        records = dict(self.records.get(collection, {}))
        records.update(changeset.upserts)
        for href in changeset.deletions:
            records.pop(href, None)
        self.records[collection] = records
        self.ctags[collection] = changeset.ctag


class JSONFileStore:
    """
    Stores everything in one JSON file::

        {"<collection>": {"ctag": "...",
                          "records": {"<href>": {"id": "...", "etag": "...",
                                                 "last_modified": "<iso 8601>",
                                                 "data": "<vcard>"}}}}

    The file is replaced atomically on commit, so it always holds the
    state after some complete sync cycle.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def _load(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            log.debug(f"no store at {self.path} yet")
            return {}

    def _save(self, content: dict) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp = tempfile.mkstemp(prefix=".carddav-", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(content, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    def get_ctag(self, collection: str) -> Optional[Tag]:
        ctag = self._load().get(collection, {}).get("ctag")
        return Tag(ctag) if ctag is not None else None

    def get_record_tags(self, collection: str) -> Dict[str, Tag]:
        records = self._load().get(collection, {}).get("records", {})
        return {href: Tag(record["etag"]) for href, record in records.items()}

    def cards(self, collection: str) -> List[Card]:
        records = self._load().get(collection, {}).get("records", {})
        return [
            Card(
                id=record["id"],
                data=record["data"],
                href=href,
                etag=Tag(record["etag"]),
                last_modified=datetime.fromisoformat(record["last_modified"])
                if record.get("last_modified")
                else None,
            )
            for href, record in records.items()
        ]

    def commit(self, collection: str, changeset: Changeset) -> None:
        content = self._load()
        section = content.setdefault(collection, {})
        records = section.setdefault("records", {})
        for href, card in changeset.upserts.items():
            records[href] = {
                "id": card.id,
                "etag": card.etag.value,
                "last_modified": card.last_modified.isoformat()
                if card.last_modified
                else None,
                "data": card.data,
            }
        for href in changeset.deletions:
            records.pop(href, None)
        section["ctag"] = changeset.ctag.value
        self._save(content)
