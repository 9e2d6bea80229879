#!/usr/bin/env python
import logging
import os
from typing import Optional

from caldavclient import __version__

## Environmental variables prepended with "PYTHON_CALDAVCLIENT" are used for
## debug purposes, environmental variables prepended with "CALDAVCLIENT_" are
## for connection parameters
debug_dump_communication = os.environ.get("PYTHON_CALDAVCLIENT_COMMDUMP", False)

## one of DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_CALDAVCLIENT_DEBUGMODE")
if not debugmode:
    if "dev" in __version__:
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("caldavclient")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class ConfigurationError(DAVError):
    """
    Missing or invalid connection parameters.  Raised while
    constructing a client, before any traffic is sent to the server.
    """

    pass


class TransportError(DAVError):
    """
    The request never got an HTTP answer: DNS failure, refused
    connection, timeout, TLS problems and the like.
    """

    pass


class RemoteError(DAVError):
    """
    The server answered with a non-2xx status.  ``status`` holds the
    HTTP status code and ``body`` the response body as text.
    """

    status: int = 0
    body: str = ""

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        status: int = 0,
        body: str = "",
    ) -> None:
        super(RemoteError, self).__init__(url=url, reason=reason)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        return "%s at '%s', status %i, reason %s" % (
            self.__class__.__name__,
            self.url,
            self.status,
            self.reason,
        )


class AuthorizationError(RemoteError):
    """
    The server rejected the credentials (401) or denied access (403).
    """

    pass


class ResponseError(DAVError):
    pass


class DiscoveryError(DAVError):
    pass


class DeleteError(DAVError):
    pass
