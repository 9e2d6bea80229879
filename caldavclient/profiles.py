"""
Server profiles - knowledge about the quirks of specific calendar
server implementations.

Most servers need nothing special, and get the ``DefaultProfile``.  A
profile is picked once, when the client is constructed, either by an
explicit ``server_type`` in the credential or by looking at the URL.
"""
import logging
from typing import Dict
from typing import List
from typing import Optional
from typing import Type

from caldavclient.lib import error
from caldavclient.lib.url import URL
from caldavclient.objects import ServerCredential
from caldavclient.protocol.xml_builders import build_propfind_body

log = logging.getLogger("caldavclient")


class ServerProfile:
    """
    Base class for server profiles.  Subclasses override ``matches`` to
    claim URLs and the other methods to adjust behaviour.
    """

    name: str = "default"

    def matches(self, url: str) -> bool:
        return False

    def normalize_base_url(self, credential: ServerCredential) -> str:
        """The URL all relative paths are resolved against; always ends with /"""
        return str(URL(credential.base_url.strip()).with_trailing_slash())

    def discovery_fallback_body(self) -> bytes:
        """
        PROPFIND body used against the root when principal and home set
        discovery fails.
        """
        return build_propfind_body(
            [
                "resourcetype",
                "displayname",
                "calendar-home-set",
                "calendar-user-address-set",
                "schedule-inbox-URL",
                "schedule-outbox-URL",
            ],
            style="upper",
        )

    def __repr__(self) -> str:
        return "<%s %s>" % (self.__class__.__name__, self.name)


class DefaultProfile(ServerProfile):
    pass


class DavicalProfile(ServerProfile):
    """
    DAViCal installations are often configured with the URL of the web
    frontend.  The DAV tree lives below caldav.php, and the user's
    calendars below caldav.php/<username>/.
    """

    name = "davical"

    def matches(self, url: str) -> bool:
        return "davical" in url.lower()

    def normalize_base_url(self, credential: ServerCredential) -> str:
        url = str(URL(credential.base_url.strip()).strip_trailing_slash())
        if "caldav.php" not in url:
            if not credential.username:
                raise error.ConfigurationError(
                    url=credential.base_url,
                    reason="the DAViCal URL rewrite needs a username",
                )
            url = "%s/caldav.php/%s" % (url, credential.username)
            log.info("DAViCal server detected, using %s", url)
        return url + "/"


_profiles: Dict[str, Type[ServerProfile]] = {}


def register_profile(profile_class: Type[ServerProfile]) -> Type[ServerProfile]:
    """Make a profile available for lookup by name and URL.  Usable as decorator."""
    _profiles[profile_class.name] = profile_class
    return profile_class


def known_profiles() -> List[str]:
    return sorted(_profiles)


register_profile(DefaultProfile)
register_profile(DavicalProfile)


def resolve_profile(url: str, server_type: Optional[str] = None) -> ServerProfile:
    """
    Pick the profile for a server.  An explicit ``server_type`` wins,
    then the first profile claiming the URL, then the default profile.
    """
    if server_type:
        try:
            return _profiles[server_type.lower()]()
        except KeyError:
            raise error.ConfigurationError(
                url=url,
                reason="unknown server type %r, known types: %s"
                % (server_type, ", ".join(known_profiles())),
            )
    for profile_class in _profiles.values():
        profile = profile_class()
        if profile.matches(url):
            return profile
    return DefaultProfile()
