"""
Pure functions for building CalDAV XML request bodies.

All functions in this module are pure - they take data in and return XML out,
with no side effects or I/O.
"""
from datetime import datetime
from typing import List
from typing import Optional

from lxml import etree

from caldavclient.elements import cdav
from caldavclient.elements import dav
from caldavclient.elements import ical
from caldavclient.elements.base import BaseElement
from caldavclient.lib.namespace import prefix_styles

DEFAULT_STYLE = "lower"

_PROPS = {
    "resourcetype": dav.ResourceType,
    "displayname": dav.DisplayName,
    "getetag": dav.GetEtag,
    "current-user-principal": dav.CurrentUserPrincipal,
    "calendar-home-set": cdav.CalendarHomeSet,
    "calendar-user-address-set": cdav.CalendarUserAddressSet,
    "schedule-inbox-URL": cdav.ScheduleInboxURL,
    "schedule-outbox-URL": cdav.ScheduleOutboxURL,
    "calendar-data": cdav.CalendarData,
    "calendar-color": ical.CalendarColor,
}


def _tostring(root: BaseElement, style: str) -> bytes:
    return etree.tostring(
        root.xmlelement(prefix_styles[style]),
        encoding="utf-8",
        xml_declaration=True,
    )


def build_propfind_body(props: List[str], style: str = DEFAULT_STYLE) -> bytes:
    """
    Build PROPFIND request body XML.

    Args:
        props: property names to retrieve, i.e. ["resourcetype", "displayname"]
        style: namespace prefix style, "lower" (d:, c:, cs:) or "upper" (D:, C:, I:)

    Returns:
        UTF-8 encoded XML bytes
    """
    try:
        prop_elements = [_PROPS[name]() for name in props]
    except KeyError as e:
        raise ValueError("unknown property %s" % e) from e
    propfind = dav.Propfind() + (dav.Prop() + prop_elements)
    return _tostring(propfind, style)


def build_calendar_query_body(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    style: str = DEFAULT_STYLE,
) -> bytes:
    """
    Build a calendar-query REPORT body fetching etag and calendar data
    of all VEVENTs.  The time-range filter is only added when both
    start and end are given.

    Returns:
        UTF-8 encoded XML bytes
    """
    prop = dav.Prop() + [dav.GetEtag(), cdav.CalendarData()]

    vevent = cdav.CompFilter("VEVENT")
    if start is not None and end is not None:
        vevent += cdav.TimeRange(start, end)
    vcalendar = cdav.CompFilter("VCALENDAR") + vevent

    query = cdav.CalendarQuery() + [prop, cdav.Filter() + vcalendar]
    return _tostring(query, style)
