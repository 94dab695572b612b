"""
Synchronous I/O implementation using the requests library.
"""

import datetime
import logging
from tempfile import NamedTemporaryFile
from typing import List, Mapping, Optional, Tuple, Union

import requests
from requests.auth import AuthBase
from requests.structures import CaseInsensitiveDict

from carddav import __version__
from carddav.lib import error
from carddav.lib.python_utilities import to_normal_str, to_wire
from carddav.protocol.types import DAVRequest, DAVResponse
from carddav.requests import HTTPBearerAuth

log = logging.getLogger("carddav")


class SyncIO:
    """
    Synchronous I/O shell using the requests library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.  Authentication is negotiated
    here: when no auth object is configured and the server answers 401
    with a WWW-Authenticate header, a matching auth object is built from
    the username and password and the request is sent once more.

    Example:
        io = SyncIO(username="alice", password="secret")
        request = protocol.current_user_principal_request("/")
        response = io.execute(request)
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        auth: Optional[AuthBase] = None,
        auth_type: Optional[str] = None,
        timeout: Optional[float] = None,
        verify: Union[bool, str] = True,
        cert: Union[str, Tuple[str, str], None] = None,
        proxy: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        """
        Args:
            session: Existing requests Session to use (creates new if None)
            username: Username for basic or digest authentication
            password: Password, or the token for bearer authentication
            auth: A requests AuthBase object, used instead of username/password
            auth_type: ``basic``, ``digest`` or ``bearer``; forces the auth scheme
            timeout: Request timeout in seconds
            verify: Verify SSL certificates, or the path of a CA bundle
            cert: Client side certificate
            proxy: Proxy URL applied to all requests
            headers: Headers sent with every request
        """
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.username = username
        self.password = password
        self.auth = auth
        self.auth_type = auth_type
        self.timeout = timeout
        self.verify = verify
        self.cert = cert
        self.proxy = proxy
        self.headers = CaseInsensitiveDict(
            {
                "User-Agent": "python-carddav/" + __version__,
                "Accept": "text/xml, text/vcard",
            }
        )
        self.headers.update(headers or {})

        if auth and auth_type:
            log.error(
                "both auth object and auth_type sent to SyncIO.  The latter will be ignored."
            )
        elif auth_type:
            self.build_auth_object()

    def extract_auth_types(self, header: str):
        """Figure out what authentication types the server supports
        from a WWW-Authenticate header
        """
        return {h.split()[0] for h in header.lower().split(",") if h.strip()}

    def build_auth_object(self, auth_types: Optional[List[str]] = None) -> None:
        """Fixes self.auth.  If ``self.auth_type`` is given, then
        insist on using this one.  If not, then assume auth_types to
        be a list of acceptable auth types and choose the most
        appropriate one (prefer digest or basic if username is given,
        and bearer if password is given).
        """
        auth_type = self.auth_type
        if not auth_type and not auth_types:
            raise error.AuthorizationError(reason="No auth-type given")
        if auth_types and auth_type and auth_type not in auth_types:
            raise error.AuthorizationError(
                reason=f"Configuration specifies to use {auth_type}, but server only accepts {auth_types}"
            )
        if not auth_type and auth_types:
            if self.username and "digest" in auth_types:
                auth_type = "digest"
            elif self.username and "basic" in auth_types:
                auth_type = "basic"
            elif self.password and "bearer" in auth_types:
                auth_type = "bearer"
            elif "bearer" in auth_types:
                raise error.AuthorizationError(
                    reason="Server provides bearer auth, but no password given.  The bearer token should be configured as password"
                )

        if auth_type == "digest":
            self.auth = requests.auth.HTTPDigestAuth(self.username, self.password)
        elif auth_type == "basic":
            self.auth = requests.auth.HTTPBasicAuth(self.username, self.password)
        elif auth_type == "bearer":
            self.auth = HTTPBearerAuth(self.password)

    def _send(self, request: DAVRequest, headers: CaseInsensitiveDict):
        proxies = None
        if self.proxy is not None:
            proxies = {request.url.split(":", 1)[0]: self.proxy}
        try:
            return self.session.request(
                method=request.method.value,
                url=request.url,
                headers=headers,
                data=request.body,
                auth=self.auth,
                proxies=proxies,
                timeout=self.timeout,
                verify=self.verify,
                cert=self.cert,
            )
        except requests.exceptions.RequestException as err:
            raise error.TransportError(url=request.url, reason=str(err)) from err

    def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Raises:
            TransportError: If no response could be obtained
            AuthorizationError: If the server asks for a scheme we can't provide
        """
        headers = self.headers.copy()
        headers.update(request.headers)
        log.debug(
            "sending request - method={0}, url={1}, headers={2}\nbody:\n{3}".format(
                request.method.value,
                request.url,
                dict(headers),
                to_normal_str(request.body),
            )
        )

        r = self._send(request, headers)
        log.debug("server responded with %i %s" % (r.status_code, r.reason))

        if (
            r.status_code == 401
            and "WWW-Authenticate" in r.headers
            and not self.auth
            and (self.username or self.password)
        ):
            auth_types = self.extract_auth_types(r.headers["WWW-Authenticate"])
            self.build_auth_object(auth_types)
            if not self.auth:
                raise error.AuthorizationError(
                    url=request.url,
                    reason="The server does not provide any of the currently "
                    "supported authentication methods: basic, digest, bearer",
                    status=401,
                )
            r = self._send(request, headers)
            log.debug("server responded with %i %s" % (r.status_code, r.reason))

        response = DAVResponse(
            status=r.status_code,
            headers=CaseInsensitiveDict(r.headers),
            body=r.content or b"",
            reason=r.reason or "",
        )

        content_type = response.headers.get("Content-Type", "")
        if (
            response.ok
            and content_type
            and not any(
                content_type.startswith(x)
                for x in ("text/xml", "application/xml", "text/vcard", "text/plain")
            )
        ):
            error.weirdness(f"Unexpected content type: {content_type}")

        if error.debug_dump_communication:
            self._dump(request, response)

        return response

    def _dump(self, request: DAVRequest, response: DAVResponse) -> None:
        with NamedTemporaryFile(prefix="carddavcomm", delete=False) as commlog:
            commlog.write(b"=" * 80 + b"\n")
            commlog.write(f"{datetime.datetime.now():%FT%H:%M:%S}".encode("utf-8"))
            commlog.write(b"\n====>\n")
            commlog.write(f"{request.method.value} {request.url}\n".encode("utf-8"))
            commlog.write(
                b"\n".join(to_wire(f"{x}: {request.headers[x]}") for x in request.headers)
            )
            commlog.write(b"\n\n")
            commlog.write(to_wire(request.body or b""))
            commlog.write(b"<====\n")
            commlog.write(f"{response.status} {response.reason}\n".encode("utf-8"))
            commlog.write(
                b"\n".join(
                    to_wire(f"{x}: {response.headers[x]}") for x in response.headers
                )
            )
            commlog.write(b"\n\n")
            commlog.write(to_wire(response.body))
            commlog.write(b"\n")

    def close(self) -> None:
        """Close the session if we created it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self) -> "SyncIO":
        return self

    def __exit__(self, *args) -> None:
        self.close()
