#!/usr/bin/env python
import sys
from collections.abc import Iterable
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from lxml import etree
from lxml.etree import _Element

from carddav.lib.namespace import nsmap
from carddav.lib.python_utilities import to_unicode

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self


class BaseElement:
    children: Optional[List[Self]] = None
    tag: ClassVar[Optional[str]] = None
    value: Optional[str] = None
    attributes: Optional[dict] = None
    ## namespaces declared on the root element when this element is
    ## serialized, in addition to the ones every request carries
    extra_nsmap: ClassVar[Dict[str, str]] = {}

    def __init__(self, value: Union[str, bytes, None] = None) -> None:
        self.children = []
        self.attributes = {}
        value = to_unicode(value)
        self.value = None
        if value is not None:
            self.value = value

    def __add__(
        self, other: Union["BaseElement", Iterable["BaseElement"]]
    ) -> "BaseElement":
        return self.append(other)

    def __str__(self) -> str:
        utf8 = etree.tostring(
            self.xmlelement(), encoding="utf-8", xml_declaration=True, pretty_print=True
        )
        return str(utf8, "utf-8")

    def _namespaces(self) -> Dict[str, str]:
        namespaces = dict(nsmap)
        namespaces.update(self.extra_nsmap)
        for c in self.children or []:
            namespaces.update(c._namespaces())
        return namespaces

    def xmlelement(self, namespaces: Optional[Dict[str, str]] = None) -> _Element:
        if self.tag is None:
            raise ValueError("Unexpected value None for self.tag")

        if self.attributes is None:
            raise ValueError("Unexpected value None for self.attributes")

        if namespaces is None:
            namespaces = self._namespaces()
        root = etree.Element(self.tag, nsmap=namespaces)
        if self.value is not None:
            root.text = self.value

        for k in self.attributes:
            root.set(k, self.attributes[k])

        self.xmlchildren(root, namespaces)
        return root

    def xmlchildren(self, root: _Element, namespaces: Dict[str, str]) -> None:
        if self.children is None:
            raise ValueError("Unexpected value None for self.children")

        for c in self.children:
            root.append(c.xmlelement(namespaces=namespaces))

    def append(self, element: Union[Self, Iterable[Self]]) -> Self:
        if self.children is None:
            raise ValueError("Unexpected value None for self.children")

        if isinstance(element, Iterable):
            self.children.extend(element)
        else:
            self.children.append(element)

        return self


class ValuedBaseElement(BaseElement):
    def __init__(self, value: Union[str, bytes, None] = None) -> None:
        super(ValuedBaseElement, self).__init__(value=value)
