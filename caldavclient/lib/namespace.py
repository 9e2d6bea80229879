#!/usr/bin/env python
from typing import Dict
from typing import Optional

DAV = "DAV:"
CALDAV = "urn:ietf:params:xml:ns:caldav"
## Not described in any RFC, but calendar-color lives here on most servers
APPLE_ICAL = "http://apple.com/ns/ical/"

nsmap: Dict[str, str] = {
    "D": DAV,
    "C": CALDAV,
}

nsmap2: Dict[str, str] = nsmap.copy()
nsmap2["I"] = APPLE_ICAL

## Servers are supposed to care about namespaces only, but some of them
## choke on one prefix casing or the other.  Request bodies can be
## rendered in either style.
prefix_styles: Dict[str, Dict[str, str]] = {
    "lower": {"d": DAV, "c": CALDAV, "cs": APPLE_ICAL},
    "upper": {"D": DAV, "C": CALDAV, "I": APPLE_ICAL},
}


def ns(prefix: str, tag: Optional[str] = None) -> str:
    name = "{%s}" % nsmap2[prefix]
    if tag is not None:
        name = "%s%s" % (name, tag)
    return name
