#!/usr/bin/env python
from typing import Dict
from typing import Optional

nsmap: Dict[str, str] = {
    "D": "DAV:",
    "C": "urn:ietf:params:xml:ns:carddav",
}

## getctag was never standardized, but it is what most CardDAV servers
## (sabre/dav, Radicale, Apple Contacts Server, Nextcloud) still
## report for collection change detection.  Only requests asking for
## the ctag carry this namespace.
nsmap2: Dict[str, str] = nsmap.copy()
nsmap2["CS"] = "http://calendarserver.org/ns/"


def ns(prefix: str, tag: Optional[str] = None) -> str:
    name = "{%s}" % nsmap2[prefix]
    if tag is not None:
        name = "%s%s" % (name, tag)
    return name
