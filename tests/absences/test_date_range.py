from __future__ import annotations

from datetime import date

import pytest

from src.absence_booking.absence_booking.absences.date_range import DateRange
from src.absence_booking.absence_booking.core.exceptions import InvalidRangeError


def _r(a: int, b: int) -> DateRange:
    # Days of February 2026.
    return DateRange.create(date(2026, 2, a), date(2026, 2, b))


@pytest.mark.parametrize(
    "other, expected",
    [
        (_r(12, 14), True),  # existing contains new
        (_r(5, 25), True),  # new contains existing
        (_r(5, 12), True),  # overlaps on the left
        (_r(18, 25), True),  # overlaps on the right
        (_r(10, 20), True),  # exact match
        (_r(20, 22), True),  # shares the last day
        (_r(1, 10), True),  # shares the first day
        (_r(21, 25), False),  # adjacent after
        (_r(1, 9), False),  # adjacent before
    ],
)
def test_overlap_cases(other, expected):
    base = _r(10, 20)
    assert base.overlaps(other) is expected
    assert other.overlaps(base) is expected


def test_overlap_matches_shared_day_definition_exhaustively():
    for a in range(1, 8):
        for b in range(a, 8):
            for c in range(1, 8):
                for d in range(c, 8):
                    shared = set(range(a, b + 1)) & set(range(c, d + 1))
                    assert _r(a, b).overlaps(_r(c, d)) is bool(shared)


def test_end_before_start_is_rejected():
    with pytest.raises(InvalidRangeError):
        DateRange.create(date(2026, 2, 10), date(2026, 2, 9))


def test_span_limit_is_365_days_inclusive():
    assert DateRange.create(date(2026, 1, 1), date(2026, 12, 31)).duration_in_days() == 365
    with pytest.raises(InvalidRangeError):
        DateRange.create(date(2026, 1, 1), date(2027, 1, 1))


def test_single_day_range():
    r = DateRange.create(date(2026, 2, 2), date(2026, 2, 2))
    assert r.duration_in_days() == 1
    assert r.working_days() == 1


def test_working_days_skip_weekends():
    # 2026-02-02 is a Monday; two full weeks.
    r = DateRange.create(date(2026, 2, 2), date(2026, 2, 15))
    assert r.duration_in_days() == 14
    assert r.working_days() == 10

    weekend = DateRange.create(date(2026, 2, 7), date(2026, 2, 8))
    assert weekend.working_days() == 0


def test_past_and_today_checks():
    r = _r(10, 20)
    assert r.is_in_past(today=date(2026, 2, 21))
    assert not r.is_in_past(today=date(2026, 2, 20))
    assert r.includes_today(today=date(2026, 2, 10))
    assert not r.includes_today(today=date(2026, 2, 9))


def test_value_semantics():
    r = _r(10, 20)
    longer = r.with_end(date(2026, 2, 22))
    later = r.with_start(date(2026, 2, 12))

    assert r.end == date(2026, 2, 20)
    assert longer == _r(10, 22)
    assert later == _r(12, 20)
    assert r == _r(10, 20)
    assert str(r) == "2026-02-10 to 2026-02-20"
    with pytest.raises(InvalidRangeError):
        r.with_start(date(2026, 2, 21))
