# roster_api/services/patterns.py
"""
Static pattern library: shift definitions, the two biweekly shift patterns,
per-role defaults for staff without an explicit pattern, the legacy staff
table and the company public holidays.

Day indices follow 0=Sunday .. 6=Saturday throughout.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional


@dataclass(frozen=True)
class ShiftDefinition:
    key: str
    type: str
    timing: Optional[str]    # "early" | "late" | None
    start_time: str          # HH:MM
    end_time: str
    work_hours: float

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "type": self.type,
            "timing": self.timing,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "work_hours": self.work_hours,
        }


def _shift(key, type_, timing, start, end, hours) -> ShiftDefinition:
    return ShiftDefinition(key, type_, timing, start, end, hours)


SHIFT_DEFINITIONS: Dict[str, ShiftDefinition] = {
    s.key: s for s in (
        _shift("11h", "11h", None, "09:15", "21:45", 11),
        _shift("9h_early", "9h", "early", "09:15", "19:15", 9),
        _shift("9h_late", "9h", "late", "11:45", "21:45", 9),
        _shift("8h_early", "8h", "early", "09:15", "18:15", 8),
        _shift("8h_late", "8h", "late", "12:45", "21:45", 8),
        _shift("7h_early", "7h", "early", "09:15", "17:15", 7),
        _shift("7h_late", "7h", "late", "13:45", "21:45", 7),
        _shift("9h_early_ramadan", "8h+1h", "early", "09:15", "17:15", 8),
        _shift("11h_ramadan", "11h", None, "09:45", "21:45", 11),
    )
}

RAMADAN_SHIFT_KEYS = frozenset({"9h_early_ramadan", "11h_ramadan"})


def find_shift_key(start_time: str, end_time: str, work_hours) -> Optional[str]:
    """Reverse lookup of a shift key from its timings (first match wins)."""
    for key, d in SHIFT_DEFINITIONS.items():
        if d.start_time == start_time and d.end_time == end_time and float(d.work_hours) == float(work_hours):
            return key
    return None


def _week(sun, mon, tue, wed, thu, fri, sat) -> Dict[int, Optional[ShiftDefinition]]:
    keys = (sun, mon, tue, wed, thu, fri, sat)
    return {i: (SHIFT_DEFINITIONS[k] if k else None) for i, k in enumerate(keys)}


# pattern index -> staff_id -> day index -> shift
# index 0 applies to odd ISO weeks, index 1 to even ISO weeks
SHIFT_PATTERNS = (
    {
        "fatimah": _week(None, "11h", "11h", "8h_early", "8h_early", "7h_early", None),
        "siti": _week("7h_late", None, None, "11h", "9h_early", "9h_early", "9h_early"),
        "pah": _week("9h_early", None, None, "9h_late", "9h_late", "9h_late", "9h_late"),
        "amal": _week("8h_late", "8h_late", "8h_late", None, None, None, "8h_late"),
    },
    {
        "fatimah": _week(None, "11h", "11h", "8h_early", "8h_early", "7h_late", None),
        "siti": _week("9h_early", None, None, "9h_late", "9h_late", "9h_late", "9h_late"),
        "pah": _week("7h_late", None, None, "11h", "9h_early", "9h_early", "9h_early"),
        "amal": _week("8h_early", "8h_early", "8h_early", None, None, None, "8h_early"),
    },
)

# role -> pattern index -> day index -> shift, for staff with no explicit pattern
DEFAULT_SHIFT_PATTERNS = {
    "Pharmacist": (
        _week(None, "11h", "11h", "8h_early", "8h_early", "7h_early", None),
        _week(None, "11h", "11h", "8h_early", "8h_early", "7h_late", None),
    ),
    "Assistant Pharmacist": (
        _week("7h_late", None, None, "11h", "9h_early", "9h_early", "9h_early"),
        _week("9h_early", None, None, "9h_late", "9h_late", "9h_late", "9h_late"),
    ),
}


# Legacy roster, seeded into the staff table by `flask seed-staff`
LEGACY_STAFF = (
    {"staff_id": "fatimah", "name": "Fatimah", "role": "Pharmacist", "weekly_hours": 45, "default_off_days": [0, 6], "color_index": 0},
    {"staff_id": "siti", "name": "Siti", "role": "Assistant Pharmacist", "weekly_hours": 45, "default_off_days": [1, 2], "color_index": 1},
    {"staff_id": "pah", "name": "Pah", "role": "Assistant Pharmacist", "weekly_hours": 45, "default_off_days": [1, 2], "color_index": 2},
    {"staff_id": "amal", "name": "Amal", "role": "Pharmacist", "weekly_hours": 32, "default_off_days": [3, 4, 5], "color_index": 3},
)


PUBLIC_HOLIDAYS = (
    # 2025
    (date(2025, 3, 31), "Raya Puasa 1"),
    (date(2025, 4, 1), "Raya Puasa 2"),
    (date(2025, 4, 2), "Raya Puasa 3 (*ganti Nuzul Quran)"),
    (date(2025, 5, 1), "Labour Day"),
    (date(2025, 6, 2), "Agong Birthday"),
    (date(2025, 6, 7), "Hari Raya Haji Day 1"),
    (date(2025, 6, 8), "Hari raya Haji Day 2 (*ganti Maulidur Rasul)"),
    (date(2025, 6, 27), "Awal Muharam"),
    (date(2025, 8, 31), "Merdeka Day"),
    (date(2025, 9, 6), "Cuti AM (*Ganti Cuti PMX Bagi)"),
    (date(2025, 9, 16), "Hari Malaysia"),
    (date(2025, 12, 11), "Sultan Selangor's Birthday"),
    # 2026
    (date(2026, 3, 21), "Hari Raya Aidilfitri"),
    (date(2026, 3, 22), "Hari Raya Aidilfitri"),
    (date(2026, 3, 23), "Hari Raya Aidilfitri"),
    (date(2026, 5, 1), "Labour Day"),
    (date(2026, 5, 27), "Hari Raya Aidiladha (Haji)"),
    (date(2026, 5, 28), "Hari Raya Aidiladha (Haji)"),
    (date(2026, 6, 1), "Agong Birthday"),
    (date(2026, 6, 17), "Awal Muharram (Maal Hijrah)"),
    (date(2026, 8, 31), "National Day (Merdeka)"),
    (date(2026, 9, 16), "Malaysia Day"),
    (date(2026, 12, 11), "Sultan of Selangor's Birthday"),
)
