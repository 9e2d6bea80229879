#!/usr/bin/env python
"""
``CalDAVClient`` is the public face of the library.  It ties together
the transport (``DAVClient``), the XML builders and parsers and the ICS
codec, and implements connection testing, calendar discovery and event
CRUD on top of them.

The client keeps no state between calls except the credential and the
base URL it was constructed with.  Every public method is one fresh
round trip to the server (two, where a fallback is defined).
"""
import dataclasses
import logging
import os
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from types import TracebackType
from typing import Callable
from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

from caldavclient import config
from caldavclient.davclient import DAVClient
from caldavclient.davclient import DAVResponse
from caldavclient.lib import error
from caldavclient.lib import vcal
from caldavclient.objects import AuthKind
from caldavclient.objects import CalendarDescriptor
from caldavclient.objects import EventRecord
from caldavclient.objects import ServerCredential
from caldavclient.profiles import resolve_profile
from caldavclient.protocol.xml_builders import build_calendar_query_body
from caldavclient.protocol.xml_builders import build_propfind_body
from caldavclient.protocol.xml_parsers import extract_calendars
from caldavclient.protocol.xml_parsers import extract_event_resources
from caldavclient.protocol.xml_parsers import extract_home_set_urls
from caldavclient.protocol.xml_parsers import extract_principal_url

log = logging.getLogger("caldavclient")

ICS_CONTENT_TYPE = "text/calendar; charset=utf-8"


@dataclass(frozen=True)
class Attempt:
    """
    One way of sending a request.  Operations with a fallback declare
    an ordered list of these; the first one that succeeds wins.

    Attributes:
        description: what's special about this attempt, for the logs
        headers: extra request headers
        body: request body, or None to use the operation's default
    """

    description: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


class CalDAVClient:
    """
    Client for one CalDAV server and one set of credentials.

    >>> credential = ServerCredential(
    ...     "https://cal.example.com/dav/", AuthKind.USERNAME, "alice", "secret")
    >>> client = CalDAVClient(credential.base_url, credential)  # doctest: +SKIP
    >>> for calendar in client.discover_calendars():  # doctest: +SKIP
    ...     events = client.get_events(calendar.url)
    """

    def __init__(
        self,
        base_url: str,
        credential: ServerCredential,
        timeout: Optional[int] = None,
        ssl_verify_cert: Union[bool, str] = True,
        ssl_cert: Union[str, Tuple[str, str], None] = None,
        headers: Optional[Mapping[str, str]] = None,
        huge_tree: bool = False,
    ) -> None:
        """
        Args:
          base_url: URL of the DAV root or the principal; takes precedence
            over ``credential.base_url``
          credential: how to authenticate
          timeout, ssl_verify_cert, ssl_cert: passed on to requests
          headers: extra headers sent with every request
          huge_tree: allow lxml to parse very big responses

        Raises:
          ConfigurationError if the credential is incomplete or the URL invalid
        """
        if base_url and base_url != credential.base_url:
            credential = dataclasses.replace(credential, base_url=base_url)
        if not credential.base_url:
            raise error.ConfigurationError(reason="no server URL given")
        self.credential = credential
        self.profile = resolve_profile(credential.base_url, credential.server_type)
        self.effective_base_url = self.profile.normalize_base_url(credential)
        log.debug(
            "using server profile %s, base url %s", self.profile, self.effective_base_url
        )
        self.client = DAVClient(
            self.effective_base_url,
            credential,
            timeout=timeout,
            ssl_verify_cert=ssl_verify_cert,
            ssl_cert=ssl_cert,
            headers=headers,
            huge_tree=huge_tree,
        )

    def __enter__(self) -> "CalDAVClient":
        return self

    def __exit__(
        self,
        exc_type: Optional[BaseException] = None,
        exc_value: Optional[BaseException] = None,
        traceback: Optional[TracebackType] = None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def _run_attempts(
        self,
        operation: str,
        attempts: List[Attempt],
        send: Callable[[Attempt], DAVResponse],
    ) -> DAVResponse:
        """
        Tries the attempts in order and returns the first successful
        response.  If all of them fail, the error of the last one is
        raised.
        """
        if not attempts:
            raise ValueError("%s: no attempts given" % operation)
        last_error = None
        for attempt in attempts:
            try:
                response = send(attempt)
            except (error.TransportError, error.RemoteError) as e:
                log.warning("%s (%s) failed: %s", operation, attempt.description, e)
                last_error = e
                continue
            log.debug("%s (%s) succeeded", operation, attempt.description)
            return response
        raise last_error

    def test_connection(self) -> bool:
        """
        Probes the server with OPTIONS, then GET, then a minimal
        PROPFIND.  Returns True as soon as one of them succeeds, False
        if all fail.  Never raises.
        """
        probes = [
            ("OPTIONS", lambda: self.client.options("")),
            ("GET", lambda: self.client.get("")),
            (
                "PROPFIND",
                lambda: self.client.propfind(
                    "", build_propfind_body(["resourcetype"]), depth=0
                ),
            ),
        ]
        for method, probe in probes:
            try:
                probe()
            except Exception as e:
                ## this is a probe, any failure just means "try the next one"
                log.info("connection test with %s failed: %s", method, e)
                continue
            log.info("connection test successful using %s", method)
            return True
        log.warning(
            "connection test against %s failed with all methods",
            self.effective_base_url,
        )
        return False

    def _find_home_sets(self) -> List[str]:
        response = self.client.propfind(
            "", build_propfind_body(["current-user-principal"], style="upper"), depth=0
        )
        principal_url = extract_principal_url(response.tree) or ""
        log.debug("principal url: %r", principal_url)
        response = self.client.propfind(
            principal_url,
            build_propfind_body(["calendar-home-set"], style="upper"),
            depth=0,
        )
        return extract_home_set_urls(response.tree)

    def discover_calendars(self) -> List[CalendarDescriptor]:
        """
        Finds the calendar collections of the user.

        First the calendar home sets are looked up through the
        current-user-principal.  If that fails, a broader PROPFIND
        towards the root is tried instead.  Then every home set (or the
        root, if no home set was found) is listed with depth 1.

        The result is not de-duplicated.

        Raises:
          DiscoveryError wrapping the underlying error
        """
        log.info("discovering calendars at %s", self.effective_base_url)
        try:
            home_sets = self._find_home_sets()
        except error.DAVError as e:
            log.warning("principal discovery failed, trying fallback: %s", e)
            try:
                response = self.client.propfind(
                    "", self.profile.discovery_fallback_body(), depth=0
                )
                home_sets = extract_home_set_urls(response.tree)
            except error.DAVError as e2:
                raise error.DiscoveryError(
                    url=self.effective_base_url,
                    reason="failed to discover calendars: %s" % e2,
                ) from e2

        if not home_sets:
            log.debug("no calendar home set found, using the root collection")
            home_sets = [""]

        body = build_propfind_body(["resourcetype", "displayname", "calendar-color"])
        calendars = []
        for home_url in home_sets:
            try:
                response = self.client.propfind(home_url, body, depth=1)
                found = extract_calendars(response.tree, home_url)
            except error.DAVError as e:
                raise error.DiscoveryError(
                    url=str(self.client.absolute_url(home_url)),
                    reason="failed to discover calendars: %s" % e,
                ) from e
            log.debug("%i calendar(s) in home set %r", len(found), home_url)
            calendars.extend(found)
        return calendars

    def _collection_url(self, calendar_url: str) -> str:
        return str(self.client.absolute_url(calendar_url).with_trailing_slash())

    def get_events(
        self,
        calendar_url: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[EventRecord]:
        """
        Fetches the events of a calendar, optionally restricted to the
        time range start - end (both must be given for the filter to be
        applied).

        Entries that can't be parsed are skipped, they don't make the
        whole call fail.
        """
        url = self._collection_url(calendar_url)
        log.info("getting events from %s", url)
        if start is not None and end is not None:
            log.debug("time range: %s to %s", start, end)

        attempts = [
            Attempt("calendar-query", body=build_calendar_query_body(start, end)),
            Attempt(
                "calendar-query with upper case prefixes",
                body=build_calendar_query_body(start, end, style="upper"),
            ),
        ]
        response = self._run_attempts(
            "REPORT %s" % url,
            attempts,
            lambda attempt: self.client.report(
                url, attempt.body, depth=1, headers=attempt.headers
            ),
        )

        events = []
        for href, ics in extract_event_resources(response.tree):
            event = vcal.decode(ics, href)
            if event is None:
                log.warning("skipping unparseable event at %s", href)
                continue
            events.append(event)
        return events

    def create_event(self, calendar_url: str, event: EventRecord) -> EventRecord:
        """
        Stores a new event in the calendar.  A UID is generated, and the
        event ends up at <calendar_url><uid>.ics.

        Returns:
          the event with uid, resource_url and recurrence_rule filled in
        """
        uid = vcal.generate_uid()
        event_url = self._collection_url(calendar_url) + uid + ".ics"
        ics = vcal.encode(event, uid)
        log.info("creating event %s at %s", uid, event_url)

        attempts = [
            Attempt("plain PUT"),
            Attempt("PUT with If-None-Match", headers={"If-None-Match": "*"}),
        ]
        self._run_attempts(
            "PUT %s" % event_url,
            attempts,
            lambda attempt: self.client.put(
                event_url, ics, {"Content-Type": ICS_CONTENT_TYPE, **attempt.headers}
            ),
        )
        return dataclasses.replace(
            event,
            uid=uid,
            resource_url=event_url,
            recurrence_rule=vcal.rrule_string(event),
        )

    def update_event(self, event: EventRecord) -> EventRecord:
        """
        Replaces the full event on the server.  The event needs the uid
        and resource_url it got when it was created or fetched.

        Returns:
          the event, unchanged
        """
        if not event.uid or not event.resource_url:
            raise ValueError("update_event needs an event with uid and resource_url")
        event_url = str(self.client.absolute_url(event.resource_url))
        ics = vcal.encode(event, event.uid)
        log.info("updating event %s at %s", event.uid, event_url)

        attempts = [
            Attempt("plain PUT"),
            Attempt("PUT with If-Match", headers={"If-Match": "*"}),
        ]
        self._run_attempts(
            "PUT %s" % event_url,
            attempts,
            lambda attempt: self.client.put(
                event_url, ics, {"Content-Type": ICS_CONTENT_TYPE, **attempt.headers}
            ),
        )
        return event

    def delete_event(self, resource_url: str) -> bool:
        """
        Removes an event from the server.

        Returns:
          True

        Raises:
          DeleteError if both the plain and the conditional DELETE failed
        """
        event_url = str(self.client.absolute_url(resource_url))
        log.info("deleting event at %s", event_url)

        attempts = [
            Attempt("plain DELETE"),
            Attempt("DELETE with If-Match", headers={"If-Match": "*"}),
        ]
        try:
            self._run_attempts(
                "DELETE %s" % event_url,
                attempts,
                lambda attempt: self.client.delete(event_url, attempt.headers),
            )
        except (error.TransportError, error.RemoteError) as e:
            raise error.DeleteError(
                url=event_url, reason="failed to delete event: %s" % e
            ) from e
        return True


def _credential_from_params(params: Dict[str, str]) -> ServerCredential:
    auth_kind = params.get("auth_kind")
    if auth_kind:
        try:
            auth_kind = AuthKind(str(auth_kind).lower())
        except ValueError:
            raise error.ConfigurationError(
                url=params.get("url"), reason="unknown auth kind %r" % auth_kind
            )
    elif params.get("token") and not params.get("username"):
        auth_kind = AuthKind.TOKEN
    else:
        auth_kind = AuthKind.USERNAME
    return ServerCredential(
        base_url=params.get("url") or "",
        auth_kind=auth_kind,
        username=params.get("username"),
        password=params.get("password"),
        token=params.get("token"),
        server_type=params.get("server_type"),
    )


def get_calendar_client(
    check_config_file: bool = True,
    config_file: Optional[str] = None,
    config_section: Optional[str] = None,
    environment: bool = True,
    **config_data,
) -> Optional[CalDAVClient]:
    """
    This function will yield a CalDAVClient object.  It will not try to
    connect (see ``test_connection`` for that).  It will read
    configuration from various sources, dependent on the parameters
    given, in this order:

    * Data from the parameters given (url, username, password, token,
      auth_kind, server_type, timeout, ssl_verify_cert, ssl_cert,
      headers)
    * Environment variables prepended with `CALDAVCLIENT_`, like
      `CALDAVCLIENT_URL`, `CALDAVCLIENT_USERNAME`, `CALDAVCLIENT_PASSWORD`.
      `CALDAVCLIENT_CONFIG_FILE` and `CALDAVCLIENT_CONFIG_SECTION` are
      honored as well
    * A configuration file section, with keys like `caldav_url`,
      `caldav_user` and `caldav_pass`

    Returns None if no configuration was found.
    """
    conn_params = dict(config_data)

    if not conn_params and environment:
        for conf_key in (
            x
            for x in os.environ
            if x.startswith("CALDAVCLIENT_") and not x.startswith("CALDAVCLIENT_CONFIG")
        ):
            conn_params[conf_key[13:].lower()] = os.environ[conf_key]
        if not config_file:
            config_file = os.environ.get("CALDAVCLIENT_CONFIG_FILE")
        if not config_section:
            config_section = os.environ.get("CALDAVCLIENT_CONFIG_SECTION")

    if not conn_params and check_config_file:
        cfg = config.read_config(config_file)
        if cfg:
            section = config.config_section(cfg, config_section or "default")
            conn_params = config.connection_params(section)

    if not conn_params:
        return None

    timeout = conn_params.pop("timeout", None)
    ssl_verify_cert = conn_params.pop("ssl_verify_cert", True)
    ## environment variables and config files give strings
    if isinstance(ssl_verify_cert, str) and ssl_verify_cert.lower() in (
        "false",
        "no",
        "0",
    ):
        ssl_verify_cert = False
    credential = _credential_from_params(conn_params)
    return CalDAVClient(
        credential.base_url,
        credential,
        timeout=int(timeout) if timeout else None,
        ssl_verify_cert=ssl_verify_cert,
        ssl_cert=conn_params.get("ssl_cert"),
        headers=conn_params.get("headers"),
    )
