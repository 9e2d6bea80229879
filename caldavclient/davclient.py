#!/usr/bin/env python
"""
The ``DAVClient`` class handles the basic communication with a
CalDAV server: it knows the HTTP verbs WebDAV adds (PROPFIND and
REPORT), injects authentication into every request and turns failures
into the exceptions in ``caldavclient.lib.error``.  It has no retry or
fallback logic, that's for ``CalDAVClient`` to decide.

The ``DAVResponse`` class holds the data returned from the server.
"""
import datetime
import logging
from types import TracebackType
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

import requests
from lxml import etree
from lxml.etree import _Element
from requests.auth import AuthBase
from requests.auth import HTTPBasicAuth
from requests.models import Response
from requests.structures import CaseInsensitiveDict

from caldavclient import __version__
from caldavclient.lib import error
from caldavclient.lib.python_utilities import to_normal_str
from caldavclient.lib.python_utilities import to_wire
from caldavclient.lib.url import URL
from caldavclient.objects import AuthKind
from caldavclient.objects import ServerCredential

log = logging.getLogger("caldavclient")


class HTTPBearerAuth(AuthBase):
    def __init__(self, token: str) -> None:
        self.token = token

    def __eq__(self, other: object) -> bool:
        return self.token == getattr(other, "token", None)

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __call__(self, r):
        r.headers["Authorization"] = f"Bearer {self.token}"
        return r


def build_auth(credential: ServerCredential) -> AuthBase:
    """
    The requests auth object for a credential.  Basic auth for
    AuthKind.USERNAME, bearer auth for AuthKind.TOKEN.
    """
    if credential.auth_kind == AuthKind.USERNAME:
        if not credential.username or not credential.password:
            raise error.ConfigurationError(
                url=credential.base_url,
                reason="username authentication needs both username and password",
            )
        ## requests would encode a str password as latin-1
        return HTTPBasicAuth(credential.username, credential.password.encode("utf-8"))
    if credential.auth_kind == AuthKind.TOKEN:
        if not credential.token:
            raise error.ConfigurationError(
                url=credential.base_url,
                reason="token authentication needs a token",
            )
        return HTTPBearerAuth(credential.token)
    raise error.ConfigurationError(
        url=credential.base_url,
        reason="invalid authentication method %r" % (credential.auth_kind,),
    )


class DAVResponse:
    """
    This class is a response from a DAV request.  It is instantiated from
    the DAVClient class.  Callers of CalDAVClient should not need to know
    anything about this class.  XML bodies are parsed lazily into
    ``self.tree``.
    """

    reason: str = ""
    headers: CaseInsensitiveDict = None
    status: int = 0
    huge_tree: bool = False

    def __init__(self, response: Response, huge_tree: bool = False) -> None:
        self.headers = CaseInsensitiveDict(response.headers)
        self.status = response.status_code
        self.reason = response.reason or ""
        self.huge_tree = huge_tree
        self._raw = response.content or b""
        self._tree = None
        log.debug("response headers: " + str(self.headers))
        log.debug("response status: " + str(self.status))

    @property
    def raw(self) -> str:
        return to_normal_str(self._raw) or ""

    @property
    def content(self) -> bytes:
        if isinstance(self._raw, str):
            return self._raw.encode("utf-8")
        return self._raw

    @property
    def tree(self) -> Optional[_Element]:
        """
        The parsed XML body, or None if the body is empty.

        Raises:
          ResponseError if the body is not well-formed XML
        """
        if self._tree is None and self.content.strip():
            parser = etree.XMLParser(huge_tree=self.huge_tree, resolve_entities=False)
            try:
                self._tree = etree.fromstring(self.content, parser)
            except etree.XMLSyntaxError as e:
                raise error.ResponseError(
                    reason="invalid XML in response: %s" % e
                ) from e
        return self._tree


class DAVClient:
    """
    Basic client for WebDAV/CalDAV, bound to one server and one set of
    credentials.  Relative URLs given to the request methods are
    resolved against ``url``.
    """

    url: URL = None
    huge_tree: bool = False

    def __init__(
        self,
        url: str,
        credential: ServerCredential,
        timeout: Optional[int] = None,
        ssl_verify_cert: Union[bool, str] = True,
        ssl_cert: Union[str, Tuple[str, str], None] = None,
        headers: Optional[Mapping[str, str]] = None,
        huge_tree: bool = False,
    ) -> None:
        """
        Sets up a requests session towards the server in the url.

        Args:
          url: A fully qualified url: `scheme://hostname:port/path/`
          credential: username/password or token to authenticate with
          timeout, ssl_verify_cert and ssl_cert are passed to requests.request.
          headers: extra headers sent with every request
          huge_tree: boolean, enable XMLParser huge_tree to handle big events

        Raises:
          ConfigurationError if the credential is incomplete
        """
        self.url = URL.objectify(url)
        if not self.url.is_absolute():
            raise error.ConfigurationError(
                url=str(url), reason="the server URL must include scheme and host"
            )
        self.auth = build_auth(credential)
        self.huge_tree = huge_tree
        self.timeout = timeout
        self.ssl_verify_cert = ssl_verify_cert
        self.ssl_cert = ssl_cert

        self.session = requests.Session()
        self.session.auth = self.auth

        # Build global headers
        self.headers = CaseInsensitiveDict(
            {
                "User-Agent": "caldavclient/" + __version__,
                "Content-Type": "application/xml; charset=utf-8",
                "Depth": "1",
            }
        )
        self.headers.update(headers or {})
        log.debug("url: " + str(self.url))

    def __enter__(self) -> "DAVClient":
        return self

    def __exit__(
        self,
        exc_type: Optional[BaseException] = None,
        exc_value: Optional[BaseException] = None,
        traceback: Optional[TracebackType] = None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """
        Closes the DAVClient's session object
        """
        self.session.close()

    def absolute_url(self, url) -> URL:
        """
        Fully qualified URL for a path.  Paths are resolved against the
        base URL, fully qualified URLs are used as they are (calendar
        servers may hand out hrefs on other hosts).
        """
        url_obj = URL.objectify(url)
        if url_obj and url_obj.is_absolute():
            return url_obj
        return self.url.join(url_obj)

    def propfind(self, url: str = "", body: str = "", depth: int = 0) -> DAVResponse:
        """
        Send a propfind request.

        Args:
            url: url for the root of the propfind.
            body: XML propfind request
            depth: 0 for the resource itself, 1 to include its children

        Returns:
            DAVResponse
        """
        return self.request(url, "PROPFIND", body, {"Depth": str(depth)})

    def report(
        self,
        url: str,
        body: str = "",
        depth: int = 1,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DAVResponse:
        """
        Send a report request.

        Args:
            url: url of the collection to query
            body: XML request
            depth: maximum recursion depth

        Returns
            DAVResponse
        """
        combined = {"Depth": str(depth)}
        combined.update(headers or {})
        return self.request(url, "REPORT", body, combined)

    def get(self, url: str = "", headers: Optional[Mapping[str, str]] = None) -> DAVResponse:
        """
        Send a get request.
        """
        return self.request(url, "GET", "", headers or {})

    def put(
        self, url: str, body: str, headers: Optional[Mapping[str, str]] = None
    ) -> DAVResponse:
        """
        Send a put request.
        """
        return self.request(url, "PUT", body, headers or {})

    def delete(
        self, url: str, headers: Optional[Mapping[str, str]] = None
    ) -> DAVResponse:
        """
        Send a delete request.
        """
        return self.request(url, "DELETE", "", headers or {})

    def options(self, url: str = "") -> DAVResponse:
        """
        Send an options request.
        """
        return self.request(url, "OPTIONS")

    def request(
        self,
        url: str,
        method: str = "GET",
        body: Union[str, bytes] = "",
        headers: Optional[Mapping[str, str]] = None,
    ) -> DAVResponse:
        """
        Actually sends the request.

        Raises:
            TransportError if no HTTP response was received
            AuthorizationError on 401 and 403
            RemoteError on any other status >= 400
        """
        combined_headers = self.headers.copy()
        combined_headers.update(headers or {})
        if (body is None or body == "" or body == b"") and "Content-Type" in combined_headers:
            del combined_headers["Content-Type"]

        url_obj = self.absolute_url(url)

        log.debug(
            "sending request - method={0}, url={1}, headers={2}\nbody:\n{3}".format(
                method, str(url_obj), combined_headers, to_normal_str(body)
            )
        )

        try:
            r = self.session.request(
                method,
                str(url_obj),
                data=to_wire(body),
                headers=combined_headers,
                timeout=self.timeout,
                verify=self.ssl_verify_cert,
                cert=self.ssl_cert,
            )
        except requests.exceptions.RequestException as e:
            log.debug("%s %s failed: %s", method, url_obj, e)
            raise error.TransportError(url=str(url_obj), reason=str(e)) from e

        log.debug("server responded with %i %s" % (r.status_code, r.reason))
        response = DAVResponse(r, huge_tree=self.huge_tree)

        if error.debug_dump_communication:
            self._dump_communication(method, url_obj, combined_headers, body, response)

        if response.status in (
            requests.codes.forbidden,
            requests.codes.unauthorized,
        ):
            raise error.AuthorizationError(
                url=str(url_obj),
                reason=response.reason or "None given",
                status=response.status,
                body=response.raw,
            )
        if response.status >= 400:
            raise error.RemoteError(
                url=str(url_obj),
                reason=response.reason or "None given",
                status=response.status,
                body=response.raw,
            )
        return response

    def _dump_communication(self, method, url, headers, body, response) -> None:
        from tempfile import NamedTemporaryFile

        with NamedTemporaryFile(prefix="caldavclientcomm", delete=False) as commlog:
            commlog.write(b"=" * 80 + b"\n")
            commlog.write(f"{datetime.datetime.now():%FT%H:%M:%S}".encode("utf-8"))
            commlog.write(b"\n====>\n")
            commlog.write(f"{method} {url}\n".encode("utf-8"))
            commlog.write(b"\n".join(to_wire(f"{x}: {headers[x]}") for x in headers))
            commlog.write(b"\n\n")
            commlog.write(to_wire(body) or b"")
            commlog.write(b"<====\n")
            commlog.write(f"{response.status} {response.reason}\n".encode("utf-8"))
            commlog.write(
                b"\n".join(
                    to_wire(f"{x}: {response.headers[x]}") for x in response.headers
                )
            )
            commlog.write(b"\n\n")
            commlog.write(to_wire(response.raw))
            commlog.write(b"\n")
