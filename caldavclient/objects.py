"""
Plain data records exchanged between the CalDAV client and its callers.

None of these know anything about HTTP or XML; the client takes them in
and hands them back, and the caller is free to persist them however it
wants.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from datetime import timezone
from enum import Enum
from typing import Any

DEFAULT_CALENDAR_COLOR = "#3B82F6"
DEFAULT_CALENDAR_NAME = "Unnamed Calendar"


class AuthKind(Enum):
    """How the client authenticates towards the server."""

    USERNAME = "username"
    TOKEN = "token"


@dataclass(frozen=True)
class ServerCredential:
    """
    Connection parameters for one CalDAV server.

    Attributes:
        base_url: URL of the DAV root or the user's principal
        auth_kind: AuthKind.USERNAME (basic auth) or AuthKind.TOKEN (bearer)
        username: login name, required for AuthKind.USERNAME
        password: password, required for AuthKind.USERNAME
        token: bearer token, required for AuthKind.TOKEN
        server_type: optional explicit server profile name, i.e. "davical"
    """

    base_url: str
    auth_kind: AuthKind = AuthKind.USERNAME
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    token: str | None = field(default=None, repr=False)
    server_type: str | None = None


@dataclass(frozen=True)
class CalendarDescriptor:
    """
    A calendar collection found during discovery.

    Attributes:
        url: href of the collection, as given (or resolved) from the server
        display_name: DAV:displayname, or "Unnamed Calendar"
        color: #RRGGBB, defaults to #3B82F6
    """

    url: str
    display_name: str = DEFAULT_CALENDAR_NAME
    color: str = DEFAULT_CALENDAR_COLOR


@dataclass
class Recurrence:
    """
    Structured recurrence as entered by a user.  Only used when encoding;
    rules coming back from the server are kept as raw RRULE strings.
    """

    frequency: str | None = None
    interval: int | None = None
    count: int | None = None
    until: date | datetime | None = None
    by_day: list[str] = field(default_factory=list)

    @property
    def is_recurring(self) -> bool:
        return bool(self.frequency) and self.frequency.upper() != "NONE"


def as_utc(ts: date | datetime) -> datetime:
    """Coerce a date or datetime to an aware UTC datetime.  Naive is UTC."""
    if not isinstance(ts, datetime):
        return datetime(ts.year, ts.month, ts.day, tzinfo=timezone.utc)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def as_date(ts: date | datetime) -> date:
    if isinstance(ts, datetime):
        return as_utc(ts).date()
    return ts


@dataclass
class EventRecord:
    """
    One VEVENT stored on the server.

    ``uid`` and ``resource_url`` are empty until the event has been
    created through ``CalDAVClient.create_event`` (or fetched).  For
    all-day events ``start`` and ``end`` are dates, otherwise UTC
    datetimes.  ``timezone`` is carried for the caller, it's never used to
    shift the instants.
    """

    title: str
    start: date | datetime
    end: date | datetime
    all_day: bool = False
    description: str | None = None
    location: str | None = None
    uid: str = ""
    resource_url: str = ""
    recurrence_rule: str | None = None
    recurrence: Recurrence | None = None
    timezone: str | None = None
    metadata: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.all_day:
            self.start = as_date(self.start)
            self.end = as_date(self.end)
        else:
            self.start = as_utc(self.start)
            self.end = as_utc(self.end)
        if self.start > self.end:
            raise ValueError(
                "event %r ends (%s) before it starts (%s)"
                % (self.title, self.end, self.start)
            )
