#!/usr/bin/env python
from typing import ClassVar
from typing import Dict

from .base import BaseElement
from carddav.lib.namespace import ns
from carddav.lib.namespace import nsmap2

## Elements from the calendarserver.org namespace


class GetCtag(BaseElement):
    tag: ClassVar[str] = ns("CS", "getctag")
    extra_nsmap: ClassVar[Dict[str, str]] = {"CS": nsmap2["CS"]}
