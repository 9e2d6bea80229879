#!/usr/bin/env python
from typing import Any
from typing import Optional
from typing import Union
from urllib.parse import ParseResult
from urllib.parse import SplitResult
from urllib.parse import urlparse

from caldavclient.lib.python_utilities import to_normal_str
from caldavclient.lib.python_utilities import to_unicode


class URL:
    """
    This class is for wrapping URLs into objects.  It's used
    internally in the library, callers should not need to know anything
    about it.  All methods that accept URLs can be fed either with a URL
    object or a string.

    Addresses may be one out of three:

    1) a path relative to the DAV-root, i.e. "someuser/calendar" may
    refer to
    "http://my.davical-server.example.com/caldav.php/someuser/calendar".

    2) an absolute path, i.e. "/caldav.php/someuser/calendar"

    3) a fully qualified URL, i.e.
    "http://my.davical-server.example.com/caldav.php/someuser/calendar".

    Calendar servers hand out all three kinds in href elements, so
    everything coming back from a server is run through ``join`` on the
    base URL before it's used.
    """

    def __init__(self, url: Union[str, bytes, ParseResult, SplitResult]) -> None:
        if isinstance(url, (ParseResult, SplitResult)):
            self.url_parsed: Optional[Union[ParseResult, SplitResult]] = url
            self.url_raw = None
        else:
            self.url_raw = to_unicode(url)
            self.url_parsed = None

    def __bool__(self) -> bool:
        if self.url_raw or self.url_parsed:
            return True
        else:
            return False

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __eq__(self, other: object) -> bool:
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    @classmethod
    def objectify(cls, url: Any) -> Optional["URL"]:
        if url is None or isinstance(url, URL):
            return url
        else:
            return URL(url)

    # To deal with all kind of methods/properties in the ParseResult
    # class
    def __getattr__(self, attr: str):
        if "url_parsed" not in vars(self):
            raise AttributeError(attr)
        if self.url_parsed is None:
            self.url_parsed = urlparse(self.url_raw)
        if hasattr(self.url_parsed, attr):
            return getattr(self.url_parsed, attr)
        raise AttributeError(attr)

    def __str__(self) -> str:
        if self.url_raw is None:
            if self.url_parsed is None:
                raise ValueError("Unexpected value None for self.url_parsed")
            self.url_raw = self.url_parsed.geturl()
        return to_normal_str(self.url_raw)

    def __repr__(self) -> str:
        return "URL(%s)" % str(self)

    def is_absolute(self) -> bool:
        """True if this is a fully qualified URL with scheme and host"""
        return bool(self.scheme and self.netloc)

    def strip_trailing_slash(self) -> "URL":
        url = str(self)
        while url.endswith("/"):
            url = url[:-1]
        return URL(url)

    def with_trailing_slash(self) -> "URL":
        if str(self).endswith("/"):
            return self
        return URL(str(self) + "/")

    def join(self, path: Any) -> "URL":
        """
        assumes this object is the base URL or base path.  If the path
        is relative, it should be appended to the base.  If the path
        is absolute, it should be added to the connection details of
        self.  If the path already contains connection details and the
        connection details differ from self, raise an error.
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

        if path.path.startswith("/"):
            ret_path = path.path
        else:
            sep = "/"
            if self.path.endswith("/"):
                sep = ""
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
