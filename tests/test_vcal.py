#!/usr/bin/env python
import re
from datetime import date
from datetime import datetime
from datetime import timezone

import icalendar
import pytest

from caldavclient.lib import vcal
from caldavclient.lib.vcal import decode
from caldavclient.lib.vcal import encode
from caldavclient.objects import EventRecord
from caldavclient.objects import Recurrence

utc = timezone.utc

## example from http://www.rfc-editor.org/rfc/rfc5545.txt, slightly modified
ev1 = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp.//CalDAV Client//EN
BEGIN:VEVENT
UID:20010712T182145Z-123401@example.com
DTSTAMP:20060712T182145Z
DTSTART:20060714T170000Z
DTEND:20060715T040000Z
SUMMARY:Bastille Day Party
LOCATION:Paris
END:VEVENT
END:VCALENDAR
"""

evr = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp.//CalDAV Client//EN
BEGIN:VEVENT
UID:19970901T130000Z-123403@example.com
DTSTAMP:19970901T130000Z
DTSTART;VALUE=DATE:19971102
DTEND;VALUE=DATE:19971103
SUMMARY:Our Blissful Anniversary
TRANSP:TRANSPARENT
RRULE:FREQ=YEARLY
END:VEVENT
END:VCALENDAR"""

## the VTIMEZONE comes first and has a DTSTART of its own
ev_tz = "\r\n".join(
    [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Example Corp.//CalDAV Client//EN",
        "BEGIN:VTIMEZONE",
        "TZID:Europe/Oslo",
        "BEGIN:STANDARD",
        "DTSTART:19701025T030000",
        "TZOFFSETFROM:+0200",
        "TZOFFSETTO:+0100",
        "END:STANDARD",
        "END:VTIMEZONE",
        "BEGIN:VEVENT",
        "UID:tz-event@example.com",
        "DTSTAMP:20240101T000000Z",
        "DTSTART;TZID=Europe/Oslo:20240301T100000",
        "DTEND;TZID=Europe/Oslo:20240301T110000",
        "SUMMARY:Standup",
        "DESCRIPTION:A long description that the server has folded over more than",
        r"  one line\, with escaped commas\; semicolons\nand a newline",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]
)


def ical_lines(ics):
    return ics.splitlines()


def rrule_parts(ics):
    rrule = re.search(r"^RRULE:(.*)$", ics.replace("\r\n", "\n"), re.MULTILINE)
    return set(rrule.group(1).split(";"))


class TestEncode:
    def test_all_day(self):
        event = EventRecord(
            title="Holiday", start=date(2024, 3, 1), end=date(2024, 3, 2), all_day=True
        )
        ics = encode(event, "uid-1@example.com")
        lines = ical_lines(ics)
        assert "DTSTART;VALUE=DATE:20240301" in lines
        assert "DTEND;VALUE=DATE:20240302" in lines
        assert "UID:uid-1@example.com" in lines
        assert "SUMMARY:Holiday" in lines

    def test_timed_utc(self):
        event = EventRecord(
            title="Meeting",
            start=datetime(2024, 3, 1, 10, 0, 0, 123000, tzinfo=utc),
            end=datetime(2024, 3, 1, 11, tzinfo=utc),
        )
        lines = ical_lines(encode(event, "uid-2"))
        assert "DTSTART:20240301T100000Z" in lines
        assert "DTEND:20240301T110000Z" in lines

    def test_naive_datetime_is_utc(self):
        event = EventRecord(
            title="Meeting",
            start=datetime(2024, 3, 1, 10),
            end=datetime(2024, 3, 1, 11),
        )
        assert "DTSTART:20240301T100000Z" in ical_lines(encode(event, "uid-3"))

    def test_structure(self):
        event = EventRecord(
            title="Meeting",
            start=datetime(2024, 3, 1, 10, tzinfo=utc),
            end=datetime(2024, 3, 1, 11, tzinfo=utc),
        )
        ics = encode(event, "uid-4")
        assert ical_lines(ics)[0] == "BEGIN:VCALENDAR"
        assert ics.strip().endswith("END:VCALENDAR")
        assert "VERSION:2.0" in ics
        assert "PRODID:%s" % vcal.PRODID in ics
        assert [x for x in ical_lines(ics) if re.match(r"^DTSTAMP:\d{8}T\d{6}Z$", x)]
        assert "DESCRIPTION" not in ics
        assert "LOCATION" not in ics
        assert "RRULE" not in ics
        ## the output should be valid icalendar
        cal = icalendar.Calendar.from_ical(ics)
        assert len(cal.walk("VEVENT")) == 1

    def test_property_order(self):
        event = EventRecord(
            title="Meeting",
            description="Agenda",
            start=datetime(2024, 3, 1, 10, tzinfo=utc),
            end=datetime(2024, 3, 1, 11, tzinfo=utc),
            recurrence_rule="FREQ=DAILY;COUNT=3",
        )
        names = [
            line.split(":")[0].split(";")[0]
            for line in ical_lines(encode(event, "uid-order"))
        ]
        vevent = names[names.index("BEGIN") + 1 :]
        vevent = vevent[vevent.index("BEGIN") + 1 : vevent.index("END")]
        assert vevent == [
            "UID",
            "DTSTAMP",
            "DTSTART",
            "DTEND",
            "SUMMARY",
            "DESCRIPTION",
            "RRULE",
        ]

    def test_optional_fields(self):
        event = EventRecord(
            title="Meeting",
            description="Agenda",
            location="Room 1",
            start=datetime(2024, 3, 1, 10, tzinfo=utc),
            end=datetime(2024, 3, 1, 11, tzinfo=utc),
        )
        lines = ical_lines(encode(event, "uid-5"))
        assert "DESCRIPTION:Agenda" in lines
        assert "LOCATION:Room 1" in lines

    def test_rrule(self):
        event = EventRecord(
            title="Weekly",
            start=datetime(2024, 3, 4, 9, tzinfo=utc),
            end=datetime(2024, 3, 4, 10, tzinfo=utc),
            recurrence=Recurrence(
                frequency="WEEKLY",
                interval=2,
                count=5,
                by_day=["MO", "WE"],
            ),
        )
        assert rrule_parts(encode(event, "uid-6")) == {
            "FREQ=WEEKLY",
            "INTERVAL=2",
            "COUNT=5",
            "BYDAY=MO,WE",
        }

    def test_rrule_interval_one_and_until(self):
        event = EventRecord(
            title="Daily",
            start=datetime(2024, 3, 4, 9, tzinfo=utc),
            end=datetime(2024, 3, 4, 10, tzinfo=utc),
            recurrence=Recurrence(
                frequency="daily", interval=1, until=datetime(2024, 4, 1, tzinfo=utc)
            ),
        )
        assert rrule_parts(encode(event, "uid-7")) == {
            "FREQ=DAILY",
            "UNTIL=20240401T000000Z",
        }

    def test_no_rrule_for_frequency_none(self):
        event = EventRecord(
            title="Once",
            start=datetime(2024, 3, 4, 9, tzinfo=utc),
            end=datetime(2024, 3, 4, 10, tzinfo=utc),
            recurrence=Recurrence(frequency="NONE"),
        )
        assert "RRULE" not in encode(event, "uid-8")

    def test_raw_rrule_passed_through(self):
        event = EventRecord(
            title="Thrice",
            start=datetime(2024, 3, 4, 9, tzinfo=utc),
            end=datetime(2024, 3, 4, 10, tzinfo=utc),
            recurrence_rule="FREQ=DAILY;COUNT=3",
        )
        assert rrule_parts(encode(event, "uid-9")) == {"FREQ=DAILY", "COUNT=3"}


class TestDecode:
    def test_timed(self):
        event = decode(ev1, "/cal/ev1.ics")
        assert event.uid == "20010712T182145Z-123401@example.com"
        assert event.resource_url == "/cal/ev1.ics"
        assert event.title == "Bastille Day Party"
        assert event.location == "Paris"
        assert event.description is None
        assert event.start == datetime(2006, 7, 14, 17, tzinfo=utc)
        assert event.end == datetime(2006, 7, 15, 4, tzinfo=utc)
        assert not event.all_day
        assert event.recurrence_rule is None

    def test_all_day_with_rrule(self):
        event = decode(evr, "/cal/evr.ics")
        assert event.all_day
        assert event.start == date(1997, 11, 2)
        assert event.end == date(1997, 11, 3)
        assert event.recurrence_rule == "FREQ=YEARLY"

    def test_tzid_read_as_utc_and_folded_description(self):
        event = decode(ev_tz, "/cal/tz.ics")
        assert event.uid == "tz-event@example.com"
        assert not event.all_day
        ## not the DTSTART of the VTIMEZONE
        assert event.start == datetime(2024, 3, 1, 10, tzinfo=utc)
        assert event.description == (
            "A long description that the server has folded over more than "
            "one line, with escaped commas; semicolons\nand a newline"
        )

    def test_alarm_properties_not_used(self):
        ics = ev1.replace(
            "LOCATION:Paris\n",
            "BEGIN:VALARM\n"
            "ACTION:EMAIL\n"
            "TRIGGER:-PT15M\n"
            "SUMMARY:Alarm notification\n"
            "DESCRIPTION:This is an event reminder\n"
            "LOCATION:Inbox\n"
            "END:VALARM\n",
        )
        event = decode(ics, "/cal/alarm.ics")
        assert event.title == "Bastille Day Party"
        assert event.description is None
        assert event.location is None

    def test_event_properties_after_alarm(self):
        ics = ev1.replace(
            "SUMMARY:Bastille Day Party\n",
            "BEGIN:VALARM\n"
            "ACTION:DISPLAY\n"
            "TRIGGER:-PT15M\n"
            "DESCRIPTION:This is an event reminder\n"
            "END:VALARM\n"
            "SUMMARY:Bastille Day Party\n"
            "DESCRIPTION:Fireworks\n",
        )
        event = decode(ics, "/cal/alarm.ics")
        assert event.title == "Bastille Day Party"
        assert event.description == "Fireworks"

    def test_tzid_with_value_date_is_not_all_day(self):
        ics = ev1.replace(
            "DTSTART:20060714T170000Z", "DTSTART;VALUE=DATE;TZID=Europe/Paris:20060714"
        )
        ## not all-day, and a date can't be parsed as a timestamp
        assert decode(ics, "/x.ics") is None

    @pytest.mark.parametrize("prop", ["UID", "SUMMARY", "DTSTART", "DTEND"])
    def test_missing_required(self, prop):
        ics = "\n".join(
            line for line in ev1.split("\n") if not line.startswith(prop + ":")
        )
        assert decode(ics, "/x.ics") is None

    def test_garbage(self):
        assert decode("this is not ical", "/x.ics") is None
        assert decode(ev1.replace("20060714T170000Z", "2006-07-14"), "/x.ics") is None
        assert decode(ev1.replace("20060715T040000Z", "20061315T040000Z"), "/x.ics") is None

    def test_end_before_start(self):
        assert decode(ev1.replace("20060715T040000Z", "20060701T040000Z"), "/x.ics") is None


class TestRoundTrip:
    def test_timed(self):
        event = EventRecord(
            title="Team sync, weekly; notes \\ misc",
            description="Discuss the roadmap. " * 10,
            location="Room 42",
            start=datetime(2024, 3, 1, 10, tzinfo=utc),
            end=datetime(2024, 3, 1, 10, 30, tzinfo=utc),
        )
        decoded = decode(encode(event, "rt-1@example.com"), "/cal/rt-1.ics")
        assert decoded.uid == "rt-1@example.com"
        assert decoded.title == event.title
        assert decoded.description == event.description.strip()
        assert decoded.location == event.location
        assert decoded.start == event.start
        assert decoded.end == event.end
        assert not decoded.all_day

    def test_all_day(self):
        event = EventRecord(
            title="Holiday", start=date(2024, 3, 1), end=date(2024, 3, 2), all_day=True
        )
        decoded = decode(encode(event, "rt-2"), "/cal/rt-2.ics")
        assert decoded.all_day
        assert decoded.start == date(2024, 3, 1)
        assert decoded.end == date(2024, 3, 2)

    def test_recurrence(self):
        event = EventRecord(
            title="Standup",
            start=datetime(2024, 3, 4, 9, tzinfo=utc),
            end=datetime(2024, 3, 4, 9, 15, tzinfo=utc),
            recurrence=Recurrence(frequency="WEEKLY", by_day=["MO", "TU"]),
        )
        decoded = decode(encode(event, "rt-3"), "/cal/rt-3.ics")
        assert set(decoded.recurrence_rule.split(";")) == {"FREQ=WEEKLY", "BYDAY=MO,TU"}
        assert decoded.recurrence_rule == vcal.rrule_string(event)


class TestHelpers:
    def test_generate_uid(self):
        uid = vcal.generate_uid()
        assert re.match(r"^\d{13}-[0-9a-z]{9}@caldavclient$", uid)
        assert uid != vcal.generate_uid()

    def test_format_utc(self):
        assert vcal.format_utc(datetime(2024, 3, 1, 10, 0, 0, 999999, tzinfo=utc)) == (
            "20240301T100000Z"
        )
        assert vcal.format_utc(date(2024, 3, 1)) == "20240301T000000Z"

    def test_unfold(self):
        assert vcal.unfold("DESCRIPTION:abc\r\n def\r\n\tghi\r\nX:1") == (
            "DESCRIPTION:abcdefghi\nX:1"
        )

    def test_unescape(self):
        assert vcal.unescape(r"a\, b\; c\\d\ne\N") == "a, b; c\\d\ne\n"
