#!/usr/bin/env python
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone

import pytest

from caldavclient.objects import CalendarDescriptor
from caldavclient.objects import EventRecord
from caldavclient.objects import Recurrence


class TestEventRecord:
    def test_naive_is_utc(self):
        event = EventRecord("x", datetime(2024, 3, 1, 10), datetime(2024, 3, 1, 11))
        assert event.start == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
        assert event.start.tzinfo is not None

    def test_converted_to_utc(self):
        oslo = timezone(timedelta(hours=1))
        event = EventRecord(
            "x", datetime(2024, 3, 1, 10, tzinfo=oslo), datetime(2024, 3, 1, 11, tzinfo=oslo)
        )
        assert event.start == datetime(2024, 3, 1, 9, tzinfo=timezone.utc)
        assert event.start.utcoffset() == timedelta(0)

    def test_all_day_dates(self):
        event = EventRecord(
            "x", datetime(2024, 3, 1, 10), datetime(2024, 3, 2, 10), all_day=True
        )
        assert event.start == date(2024, 3, 1)
        assert event.end == date(2024, 3, 2)

    def test_zero_length_allowed(self):
        moment = datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
        assert EventRecord("x", moment, moment).start == moment

    def test_end_before_start(self):
        with pytest.raises(ValueError):
            EventRecord("x", datetime(2024, 3, 2), datetime(2024, 3, 1))


def test_recurrence():
    assert not Recurrence().is_recurring
    assert not Recurrence(frequency="none").is_recurring
    assert Recurrence(frequency="weekly").is_recurring


def test_calendar_defaults():
    calendar = CalendarDescriptor("/calendars/alice/work/")
    assert calendar.display_name == "Unnamed Calendar"
    assert calendar.color == "#3B82F6"
