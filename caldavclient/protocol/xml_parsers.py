"""
Pure functions for parsing CalDAV XML responses.

All functions in this module are pure - they take XML bytes in and return
structured data out, with no side effects or I/O.

Elements are always matched on namespace URI and local name.  Servers
spell the prefixes any way they like (D:, d:, a default namespace ...).
"""

import logging
import re
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

from lxml import etree
from lxml.etree import _Element

from caldavclient.elements import cdav
from caldavclient.elements import dav
from caldavclient.elements import ical
from caldavclient.lib import error
from caldavclient.lib.url import URL
from caldavclient.objects import CalendarDescriptor
from caldavclient.objects import DEFAULT_CALENDAR_COLOR
from caldavclient.objects import DEFAULT_CALENDAR_NAME

log = logging.getLogger("caldavclient")

_HEX_COLOR = re.compile(r"^[0-9A-Fa-f]{6}$")


XMLBody = Union[bytes, str, _Element, None]


def _parse(body: XMLBody, huge_tree: bool = False) -> Optional[_Element]:
    """Accepts raw XML or an element tree that was already parsed"""
    if body is None or isinstance(body, _Element):
        return body
    if isinstance(body, str):
        body = body.encode("utf-8")
    if not body.strip():
        return None
    parser = etree.XMLParser(huge_tree=huge_tree, resolve_entities=False)
    try:
        return etree.fromstring(body, parser)
    except etree.XMLSyntaxError as e:
        raise error.ResponseError(reason="invalid XML in response: %s" % e) from e


def _first_text(elem: _Element, tag: str) -> Optional[str]:
    found = elem.find(".//" + tag)
    if found is None or found.text is None:
        return None
    return found.text.strip()


def _responses(tree: _Element):
    if tree.tag == dav.Response.tag:
        return [tree]
    return tree.iter(dav.Response.tag)


def extract_principal_url(body: XMLBody) -> Optional[str]:
    """The href inside current-user-principal, if the server gave one"""
    tree = _parse(body)
    if tree is None:
        return None
    for principal in tree.iter(dav.CurrentUserPrincipal.tag):
        href = _first_text(principal, dav.Href.tag)
        if href:
            return href
    return None


def extract_home_set_urls(body: XMLBody) -> List[str]:
    """
    The href values inside every calendar-home-set element, in document
    order.  An empty list means the caller has to fall back to the
    collection root.
    """
    tree = _parse(body)
    if tree is None:
        return []
    urls = []
    for home_set in tree.iter(cdav.CalendarHomeSet.tag):
        for href in home_set.iter(dav.Href.tag):
            if href.text and href.text.strip():
                urls.append(href.text.strip())
    return urls


def validate_color(color: Optional[str]) -> str:
    """#RRGGBB if the value holds exactly six hex digits, otherwise the default"""
    if not color:
        return DEFAULT_CALENDAR_COLOR
    digits = color.strip().replace("#", "")
    if not _HEX_COLOR.match(digits):
        return DEFAULT_CALENDAR_COLOR
    return "#" + digits


def _is_calendar(response: _Element) -> bool:
    for resourcetype in response.iter(dav.ResourceType.tag):
        if resourcetype.find(cdav.Calendar.tag) is not None:
            return True
    return False


def _resolve_href(href: str, home_url: str) -> str:
    if not home_url or href.startswith("/") or "://" in href:
        return href
    return str(URL(home_url).join(href))


def extract_calendars(body: XMLBody, home_url: str = "") -> List[CalendarDescriptor]:
    """
    Calendar collections in a depth 1 PROPFIND response.

    A response counts as a calendar if its resourcetype contains a
    CalDAV calendar element.  Responses without href are skipped.
    Relative hrefs are resolved against ``home_url``.
    """
    tree = _parse(body)
    if tree is None:
        return []
    calendars = []
    for response in _responses(tree):
        if not _is_calendar(response):
            continue
        href = _first_text(response, dav.Href.tag)
        if not href:
            log.debug("calendar response without href skipped")
            continue
        calendars.append(
            CalendarDescriptor(
                url=_resolve_href(href, home_url),
                display_name=_first_text(response, dav.DisplayName.tag)
                or DEFAULT_CALENDAR_NAME,
                color=validate_color(_first_text(response, ical.CalendarColor.tag)),
            )
        )
    return calendars


def extract_event_resources(body: XMLBody) -> List[Tuple[str, str]]:
    """
    (href, calendar data) for every response in a calendar-query REPORT
    that carries both.  Servers may mix in partial results; those are
    skipped.
    """
    tree = _parse(body)
    if tree is None:
        return []
    resources = []
    for response in _responses(tree):
        href = _first_text(response, dav.Href.tag)
        data = response.find(".//" + cdav.CalendarData.tag)
        if not href or data is None or not data.text or not data.text.strip():
            continue
        resources.append((href, data.text))
    return resources
