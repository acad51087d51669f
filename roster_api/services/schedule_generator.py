# roster_api/services/schedule_generator.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import calendar as pycal

from roster_api.services.patterns import ShiftDefinition, SHIFT_PATTERNS, DEFAULT_SHIFT_PATTERNS
from roster_api.services.providers import StaffMember


@dataclass(frozen=True)
class GeneratedDay:
    date: date
    day_of_week: int            # 0=Sunday .. 6=Saturday
    iso_week: int
    pattern_index: int
    is_holiday: bool
    holiday_name: Optional[str]
    is_current_month: bool
    # only staff active on `date` appear here; None means Off
    staff_shifts: Dict[str, Optional[ShiftDefinition]] = field(default_factory=dict)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last = pycal.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def display_range(year: int, month: int) -> Tuple[date, date]:
    """Monday-start weeks that fully cover the month, spillover days included."""
    first, last = month_bounds(year, month)
    start = first - timedelta(days=first.weekday())
    end = last + timedelta(days=6 - last.weekday())
    return start, end


def day_index(d: date) -> int:
    return d.isoweekday() % 7


def pattern_index(iso_week: int) -> int:
    # odd ISO weeks -> pattern 0, even -> pattern 1
    return 0 if iso_week % 2 == 1 else 1


def shift_for(staff: StaffMember, dow: int, pidx: int) -> Optional[ShiftDefinition]:
    explicit = SHIFT_PATTERNS[pidx].get(staff.id)
    if explicit is not None:
        return explicit.get(dow)
    defaults = DEFAULT_SHIFT_PATTERNS.get(staff.role)
    if defaults:
        return defaults[pidx].get(dow)
    return None


def generate_month_schedule(
    month: int,
    year: int,
    staff: Sequence[StaffMember],
    holidays: Optional[Mapping[date, str]] = None,
) -> List[GeneratedDay]:
    """
    Base roster for the display grid of (year, month).

    Pure: the result depends only on the arguments. Holidays block every
    active staff member; staff whose activation date is after a day are
    left out of that day's map entirely.
    """
    holidays = holidays or {}
    start, end = display_range(year, month)

    days: List[GeneratedDay] = []
    d = start
    while d <= end:
        iso_week = d.isocalendar()[1]
        pidx = pattern_index(iso_week)
        dow = day_index(d)
        holiday_name = holidays.get(d)
        is_holiday = holiday_name is not None

        shifts: Dict[str, Optional[ShiftDefinition]] = {}
        for m in staff:
            if not m.active_on(d):
                continue
            shifts[m.id] = None if is_holiday else shift_for(m, dow, pidx)

        days.append(GeneratedDay(
            date=d,
            day_of_week=dow,
            iso_week=iso_week,
            pattern_index=pidx,
            is_holiday=is_holiday,
            holiday_name=holiday_name,
            is_current_month=(d.year == year and d.month == month),
            staff_shifts=shifts,
        ))
        d += timedelta(days=1)
    return days
