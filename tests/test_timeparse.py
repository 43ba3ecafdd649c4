"""Tests for date and time parsing."""

from datetime import date, time

import pytest

from termcal.core.timeparse import format_date_fields, parse_date, parse_time
from termcal.errors import ParseError


class TestParseTime:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("3:04PM", time(15, 4)),
            ("3:04 PM", time(15, 4)),
            ("3:04 pm", time(15, 4)),
            ("15:04", time(15, 4)),
            ("3", time(3, 0)),
            ("15", time(15, 0)),
            ("3PM", time(15, 0)),
            ("3 PM", time(15, 0)),
            ("12 AM", time(0, 0)),
            ("930", time(9, 30)),
            ("1530", time(15, 30)),
            ("  9:15  ", time(9, 15)),
        ],
    )
    def test_accepted_forms(self, text, expected):
        assert parse_time(text) == expected

    @pytest.mark.parametrize("text", ["", "noon", "25:00", "3:75 PM", "13PM"])
    def test_rejects_garbage(self, text):
        with pytest.raises(ParseError):
            parse_time(text)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_time("later")


class TestParseDate:
    @pytest.mark.parametrize(
        "text", ["2024-06-03", "Jun 3 2024", "Jun 03 2024", "June 3 2024", "06/03/2024"]
    )
    def test_accepted_forms(self, text):
        assert parse_date(text) == date(2024, 6, 3)

    def test_rejects_garbage(self):
        with pytest.raises(ParseError):
            parse_date("tomorrow")

    def test_format_round_trips(self):
        d = date(2024, 12, 25)
        assert parse_date(format_date_fields(d)) == d
