#!/usr/bin/env python
import logging

__version__ = "0.1.0"

from .calendarclient import CalDAVClient
from .calendarclient import get_calendar_client
from .objects import AuthKind
from .objects import CalendarDescriptor
from .objects import EventRecord
from .objects import Recurrence
from .objects import ServerCredential

# Silence notification of no default logging handler
log = logging.getLogger("caldavclient")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

__all__ = [
    "__version__",
    "AuthKind",
    "CalDAVClient",
    "CalendarDescriptor",
    "EventRecord",
    "Recurrence",
    "ServerCredential",
    "get_calendar_client",
]
