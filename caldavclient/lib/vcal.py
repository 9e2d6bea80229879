#!/usr/bin/env python
"""
Conversion between EventRecord objects and iCalendar (RFC5545) text.

Only the handful of VEVENT properties the client cares about are
covered: UID, DTSTAMP, DTSTART, DTEND, SUMMARY, DESCRIPTION, LOCATION
and RRULE.  Outgoing data is generated through the icalendar library.
Incoming data is picked apart property by property with regular
expressions, since calendar servers deliver all kinds of slightly broken
ical, and one broken event should not stop us from reading the rest of
a calendar.
"""
import datetime
import logging
import random
import re
import string
import time
from typing import Dict
from typing import Optional
from typing import Tuple

import icalendar

from caldavclient.lib.python_utilities import to_normal_str
from caldavclient.objects import as_date
from caldavclient.objects import as_utc
from caldavclient.objects import EventRecord
from caldavclient.objects import Recurrence

log = logging.getLogger("caldavclient")

PRODID = "-//caldavclient//CalDAV Client//EN"
UID_DOMAIN = "caldavclient"

_BASE36 = string.digits + string.ascii_lowercase

## NAME;PARAM=x;PARAM="quoted:value":VALUE
_PARAMS = r'((?:;(?:"[^"]*"|[^:;"\n])*)*)'
_BASIC_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_BASIC_DATETIME = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})Z?$")
_SUBCOMPONENT = re.compile(
    r"^BEGIN:([A-Za-z0-9-]+)[ \t]*$.*?^END:\1[ \t]*$\n?", re.MULTILINE | re.DOTALL
)


def format_utc(ts) -> str:
    """UTC basic format, no milliseconds: 20240301T100000Z"""
    return as_utc(ts).strftime("%Y%m%dT%H%M%SZ")


def generate_uid() -> str:
    """
    {epoch milliseconds}-{9 random base36 characters}@caldavclient

    Uniqueness only matters within one calendar collection.
    """
    millis = int(time.time() * 1000)
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return "%i-%s@%s" % (millis, suffix, UID_DOMAIN)


def build_rrule(recurrence: Recurrence) -> Optional[icalendar.vRecur]:
    if recurrence is None or not recurrence.is_recurring:
        return None
    rule = icalendar.vRecur()
    rule["FREQ"] = recurrence.frequency.upper()
    if recurrence.interval and recurrence.interval > 1:
        rule["INTERVAL"] = recurrence.interval
    if recurrence.count:
        rule["COUNT"] = recurrence.count
    if recurrence.until:
        rule["UNTIL"] = as_utc(recurrence.until)
    if recurrence.by_day:
        rule["BYDAY"] = [day.upper() for day in recurrence.by_day]
    return rule


def rrule_string(event: EventRecord) -> Optional[str]:
    """The RRULE value that ``encode`` will emit for this event, if any"""
    rule = build_rrule(event.recurrence)
    if rule is not None:
        return to_normal_str(rule.to_ical())
    return event.recurrence_rule or None


def encode(event: EventRecord, uid: str) -> str:
    """
    Render the event as a complete VCALENDAR object with one VEVENT.

    All-day events get ``DTSTART;VALUE=DATE:YYYYMMDD``, timed events are
    always written in UTC, ``DTSTART:YYYYMMDDTHHMMSSZ``.
    """
    cal = icalendar.Calendar()
    cal.add("version", "2.0")
    cal.add("prodid", PRODID)

    vevent = icalendar.Event()
    vevent.add("uid", uid)
    vevent.add(
        "dtstamp", datetime.datetime.now(tz=datetime.timezone.utc).replace(microsecond=0)
    )
    if event.all_day:
        vevent.add("dtstart", as_date(event.start))
        vevent.add("dtend", as_date(event.end))
    else:
        vevent.add("dtstart", as_utc(event.start).replace(microsecond=0))
        vevent.add("dtend", as_utc(event.end).replace(microsecond=0))
    vevent.add("summary", event.title)
    if event.description:
        vevent.add("description", event.description)
    if event.location:
        vevent.add("location", event.location)

    rule = build_rrule(event.recurrence)
    if rule is not None:
        vevent.add("rrule", rule)
    elif event.recurrence_rule:
        ## raw rule from the server, passed through untouched
        vevent.add("rrule", icalendar.vRecur.from_ical(event.recurrence_rule))

    cal.add_component(vevent)
    ## keep the properties in the order they were added
    return to_normal_str(cal.to_ical(sorted=False))


def unfold(ics: str) -> str:
    """
    Undo RFC5545 line folding: a line break followed by a single space
    or tab is a continuation of the previous line.
    """
    ics = to_normal_str(ics).replace("\r\n", "\n").replace("\r", "\n")
    return re.sub(r"\n[ \t]", "", ics)


def unescape(value: str) -> str:
    """Undo RFC5545 TEXT escaping (\\n, \\N, \\, \\; and \\\\)"""
    return re.sub(
        r"\\([nN,;\\])",
        lambda m: "\n" if m.group(1) in "nN" else m.group(1),
        value,
    )


def _vevent_block(ics: str) -> str:
    """
    The properties of the first VEVENT of the data, or the whole text if
    there is no VEVENT.  Subcomponents like VALARM are cut out, their
    DESCRIPTION and SUMMARY belong to the alarm and not to the event.
    """
    match = re.search(
        r"^BEGIN:VEVENT[ \t]*$(.*?)^END:VEVENT[ \t]*$", ics, re.MULTILINE | re.DOTALL
    )
    if not match:
        return ics
    return _SUBCOMPONENT.sub("", match.group(1))


def _find_property(block: str, name: str) -> Optional[Tuple[Dict[str, str], str]]:
    """Returns (params, raw value) for the first occurrence of a property"""
    match = re.search(
        r"^%s%s:(.*)$" % (re.escape(name), _PARAMS), block, re.MULTILINE | re.IGNORECASE
    )
    if not match:
        return None
    params = {}
    for param in match.group(1).split(";"):
        if not param:
            continue
        key, _, value = param.partition("=")
        params[key.strip().upper()] = value.strip().strip('"')
    return params, match.group(2).strip()


def _text(block: str, name: str) -> Optional[str]:
    found = _find_property(block, name)
    if found is None:
        return None
    return unescape(found[1])


def _parse_date(value: str) -> Optional[datetime.date]:
    match = _BASIC_DATE.match(value[:8])
    if not match:
        return None
    year, month, day = (int(x) for x in match.groups())
    try:
        return datetime.date(year, month, day)
    except ValueError:
        return None


def _parse_utc(value: str) -> Optional[datetime.datetime]:
    match = _BASIC_DATETIME.match(value)
    if not match:
        return None
    try:
        return datetime.datetime.fromisoformat(
            "%s-%s-%sT%s:%s:%s+00:00" % match.groups()
        )
    except ValueError:
        return None


def _is_all_day(params: Dict[str, str]) -> bool:
    return params.get("VALUE", "").upper() == "DATE" and "TZID" not in params


def decode(ics: str, resource_url: str) -> Optional[EventRecord]:
    """
    Parse calendar data fetched from the server into an EventRecord.

    Returns None if UID, SUMMARY, DTSTART or DTEND is missing or can't
    be parsed.  Times given with a TZID are read as if they were UTC.
    """
    block = _vevent_block(unfold(ics))

    uid = _text(block, "UID")
    title = _text(block, "SUMMARY")
    dtstart = _find_property(block, "DTSTART")
    dtend = _find_property(block, "DTEND")
    if not uid or title is None or dtstart is None or dtend is None:
        log.debug("Skipping calendar data at %s, missing properties", resource_url)
        return None

    all_day = _is_all_day(dtstart[0])
    if all_day:
        start = _parse_date(dtstart[1])
        end = _parse_date(dtend[1])
    else:
        start = _parse_utc(dtstart[1])
        end = _parse_utc(dtend[1])
    if start is None or end is None:
        log.debug(
            "Skipping calendar data at %s, can't parse %s / %s",
            resource_url,
            dtstart[1],
            dtend[1],
        )
        return None

    rrule = _find_property(block, "RRULE")
    try:
        return EventRecord(
            uid=uid.strip(),
            resource_url=resource_url,
            title=title.strip(),
            description=_strip_or_none(_text(block, "DESCRIPTION")),
            location=_strip_or_none(_text(block, "LOCATION")),
            start=start,
            end=end,
            all_day=all_day,
            recurrence_rule=rrule[1] if rrule else None,
        )
    except ValueError:
        log.debug("Skipping calendar data at %s", resource_url, exc_info=True)
        return None


def _strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip()
