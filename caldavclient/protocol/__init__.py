"""
Sans-I/O CalDAV protocol helpers.

- xml_builders: pure functions building XML request bodies
- xml_parsers: pure functions extracting records from multistatus bodies

Example usage:

    from caldavclient.protocol import build_propfind_body, extract_calendars

    body = build_propfind_body(["resourcetype", "displayname", "calendar-color"])
    response = your_http_client.propfind("/calendars/user/", body, depth=1)
    calendars = extract_calendars(response.raw, "/calendars/user/")
"""

from .xml_builders import build_calendar_query_body
from .xml_builders import build_propfind_body
from .xml_parsers import extract_calendars
from .xml_parsers import extract_event_resources
from .xml_parsers import extract_home_set_urls
from .xml_parsers import extract_principal_url
from .xml_parsers import validate_color

__all__ = [
    "build_calendar_query_body",
    "build_propfind_body",
    "extract_calendars",
    "extract_event_resources",
    "extract_home_set_urls",
    "extract_principal_url",
    "validate_color",
]
