from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import Iterator, Mapping


CYCLE_LENGTH = 8


class RotationGroup(str, enum.Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class ShiftType(str, enum.Enum):
    DAY = "Day"
    NIGHT = "Night"
    OFF = "Off"
    LEAVE = "Leave"
    PUBLIC = "Public"
    OVERTIME = "Overtime"
    IN_LIEU = "InLieu"


@dataclass(frozen=True)
class RotationAnchor:
    day: date
    cycle_offset: int


# Reference year 2025: Jan 1 has D on its second day shift and C on its second night.
ROTATION_ANCHORS: Mapping[RotationGroup, RotationAnchor] = {
    RotationGroup.A: RotationAnchor(day=date(2025, 1, 4), cycle_offset=1),
    RotationGroup.B: RotationAnchor(day=date(2025, 1, 2), cycle_offset=1),
    RotationGroup.C: RotationAnchor(day=date(2025, 1, 6), cycle_offset=1),
    RotationGroup.D: RotationAnchor(day=date(2025, 1, 1), cycle_offset=2),
}

_CYCLE_SHIFTS: dict[int, ShiftType] = {
    1: ShiftType.DAY,
    2: ShiftType.DAY,
    3: ShiftType.NIGHT,
    4: ShiftType.NIGHT,
    5: ShiftType.OFF,
    6: ShiftType.OFF,
    7: ShiftType.OFF,
    8: ShiftType.OFF,
}

DAY_SHIFT_HOURS = (time(7, 0), time(19, 0))
NIGHT_SHIFT_HOURS = (time(19, 0), time(7, 0))


@dataclass(frozen=True)
class GroupSlot:
    group: RotationGroup
    is_first: bool


@dataclass(frozen=True)
class GroupAssignments:
    day: date
    day_shift: GroupSlot
    night_shift: GroupSlot
    off: list[RotationGroup] = field(default_factory=list)


def day_of_year(value: date) -> int:
    return value.timetuple().tm_yday


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def days_offset(value: date, anchor: RotationAnchor, *, leap_aware: bool = True) -> int:
    """Days between the anchor and ``value``.

    With ``leap_aware=False`` the historical arithmetic is used, counting every
    year between the two dates as 365 days. Both agree inside the anchor year.
    """
    if leap_aware:
        return (value - anchor.day).days
    year_offset = value.year - anchor.day.year
    return day_of_year(value) - day_of_year(anchor.day) + year_offset * 365


def cycle_day(value: date, group: RotationGroup, *, leap_aware: bool = True) -> int:
    anchor = ROTATION_ANCHORS[RotationGroup(group)]
    offset = days_offset(value, anchor, leap_aware=leap_aware)
    # Python's % is floored, so dates before the anchor still land in 1..8.
    return ((anchor.cycle_offset - 1 + offset) % CYCLE_LENGTH) + 1


def compute_shift(value: date, group: RotationGroup, *, leap_aware: bool = True) -> ShiftType:
    return _CYCLE_SHIFTS[cycle_day(value, group, leap_aware=leap_aware)]


def shift_number(value: date, group: RotationGroup, *, leap_aware: bool = True) -> int | None:
    position = cycle_day(value, group, leap_aware=leap_aware)
    if position in (1, 3):
        return 1
    if position in (2, 4):
        return 2
    return None


def group_assignments(value: date, *, leap_aware: bool = True) -> GroupAssignments:
    day_slot: GroupSlot | None = None
    night_slot: GroupSlot | None = None
    off: list[RotationGroup] = []
    for group in RotationGroup:
        position = cycle_day(value, group, leap_aware=leap_aware)
        shift = _CYCLE_SHIFTS[position]
        if shift == ShiftType.DAY:
            day_slot = GroupSlot(group=group, is_first=position == 1)
        elif shift == ShiftType.NIGHT:
            night_slot = GroupSlot(group=group, is_first=position == 3)
        else:
            off.append(group)

    # Anchors are staggered by two days, so each date has exactly one day and one night group.
    assert day_slot is not None and night_slot is not None
    return GroupAssignments(day=value, day_shift=day_slot, night_shift=night_slot, off=off)


def shift_work_hours(shift_type: ShiftType) -> tuple[time, time] | None:
    if shift_type == ShiftType.DAY:
        return DAY_SHIFT_HOURS
    if shift_type == ShiftType.NIGHT:
        return NIGHT_SHIFT_HOURS
    return None


def regular_work_hours(value: date) -> tuple[time, time] | None:
    # Sunday-Wednesday full day, Thursday half day, Friday and Saturday off.
    weekday = value.weekday()
    if weekday in (6, 0, 1, 2):
        return time(7, 45), time(16, 0)
    if weekday == 3:
        return time(7, 45), time(13, 30)
    return None


def resolve_effective_shift(rotation_shift: ShiftType, override_shift: ShiftType | None) -> ShiftType:
    if override_shift is not None:
        return override_shift
    return rotation_shift


def effective_group(
    value: date,
    default_group: RotationGroup,
    group_changes: Mapping[date, RotationGroup] | None = None,
) -> tuple[RotationGroup, bool]:
    """Group in force on ``value`` and whether a group change produced it."""
    applicable = sorted(day for day in (group_changes or {}) if day <= value)
    if not applicable:
        return default_group, False
    return RotationGroup(group_changes[applicable[-1]]), True  # type: ignore[index]
