#!/usr/bin/env python
import sys
import urllib.parse
from typing import Any
from typing import cast
from typing import Optional
from typing import Union
from urllib.parse import ParseResult
from urllib.parse import quote
from urllib.parse import SplitResult
from urllib.parse import unquote
from urllib.parse import urlparse

from carddav.lib.python_utilities import to_unicode

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self


def quote_path(path: str) -> str:
    """
    Wire form of a path.  Hrefs are kept unquoted inside the library,
    so "#" or "?" in a collection name must be escaped again before
    the path goes into a request line.  Already quoted paths come out
    the same.  "@" is left alone, some servers put the user's mail
    address in the path.
    """
    return quote(unquote(path), "/@")


class URL:
    """
    Wraps a URL, an absolute path ("/addressbooks/alice/") or a
    relative path ("alice/contacts") into one object.  Attribute
    lookups are forwarded to the parsed form, so ``URL(x).path`` and
    ``URL(x).netloc`` work as on a ParseResult.
    """

    def __init__(self, url: Union[str, ParseResult, SplitResult]) -> None:
        if isinstance(url, (ParseResult, SplitResult)):
            self.url_parsed: Optional[Union[ParseResult, SplitResult]] = url
            self.url_raw = None
        else:
            self.url_raw = url
            self.url_parsed = None

    @classmethod
    def objectify(cls, url: Union[Self, str, ParseResult, SplitResult, None]) -> "URL":
        if url is None or isinstance(url, URL):
            return url
        return URL(url)

    def __getattr__(self, attr: str):
        if "url_parsed" not in vars(self):
            raise AttributeError(attr)
        if self.url_parsed is None:
            self.url_parsed = cast(urllib.parse.ParseResult, urlparse(self.url_raw))
        return getattr(self.url_parsed, attr)

    def __str__(self) -> str:
        if self.url_raw is None:
            self.url_raw = self.url_parsed.geturl()
        return to_unicode(self.url_raw)

    def unauth(self) -> "URL":
        """
        The same URL without credentials.  The netloc always gets an
        explicit port.
        """
        if self.username is None:
            return self
        return URL(
            ParseResult(
                self.scheme,
                "%s:%s"
                % (self.hostname, self.port or {"https": 443, "http": 80}[self.scheme]),
                self.path.replace("//", "/"),
                self.params,
                self.query,
                self.fragment,
            )
        )

    def join(self, path: Any) -> "URL":
        """
        Treats self as the base.  A relative path is appended to the base
        path, an absolute path replaces it, and a full URL is accepted
        only if it points to the same server.
        """
        if path is None or not str(path):
            return self
        path = URL.objectify(path)
        if (
            (path.scheme and self.scheme and path.scheme != self.scheme)
            or (path.hostname and self.hostname and path.hostname != self.hostname)
            or (path.port and self.port and path.port != self.port)
        ):
            raise ValueError("%s can't be joined with %s" % (self, path))

        if path.path and path.path[0] == "/":
            ret_path = path.path
        else:
            sep = "" if self.path.endswith("/") else "/"
            ret_path = "%s%s%s" % (self.path, sep, path.path)
        return URL(
            ParseResult(
                self.scheme or path.scheme,
                self.netloc or path.netloc,
                ret_path,
                path.params,
                path.query,
                path.fragment,
            )
        )
