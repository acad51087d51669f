from datetime import date

import pytest

from roster_api.common.errors import ValidationError
from roster_api.common.parsing import parse_date, parse_year_month, parse_hhmm


def test_parse_date_accepts_iso_and_time_suffix():
    assert parse_date("2025-03-05") == date(2025, 3, 5)
    assert parse_date(" 2025-03-05T08:00:00Z ") == date(2025, 3, 5)
    assert parse_date(date(2025, 3, 5)) == date(2025, 3, 5)


@pytest.mark.parametrize("raw", ["2025-03-05garbage", "2025-3-5", "05-03-2025", "2025-02-30", ""])
def test_parse_date_rejects_malformed(raw):
    with pytest.raises(ValidationError):
        parse_date(raw)


def test_year_month_bounds():
    assert parse_year_month("2025", "12") == (2025, 12)
    assert parse_year_month(9998, 12) == (9998, 12)
    for y, m in ((9999, 12), (1899, 1), (2025, 0), (2025, 13), ("x", 1)):
        with pytest.raises(ValidationError):
            parse_year_month(y, m)


def test_hhmm():
    assert parse_hhmm("09:15", "start_time") == "09:15"
    with pytest.raises(ValidationError):
        parse_hhmm("24:00", "start_time")
