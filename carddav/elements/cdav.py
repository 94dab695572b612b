#!/usr/bin/env python
from typing import ClassVar

from .base import BaseElement
from carddav.lib.namespace import ns

## CardDAV (RFC 6352) elements


# Operations
class AddressbookQuery(BaseElement):
    tag: ClassVar[str] = ns("C", "addressbook-query")


# Properties
class AddressbookHomeSet(BaseElement):
    tag: ClassVar[str] = ns("C", "addressbook-home-set")


class Addressbook(BaseElement):
    tag: ClassVar[str] = ns("C", "addressbook")


class AddressData(BaseElement):
    tag: ClassVar[str] = ns("C", "address-data")


class Filter(BaseElement):
    tag: ClassVar[str] = ns("C", "filter")
