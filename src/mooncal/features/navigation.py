# src/mooncal/features/navigation.py
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Optional, Union

from mooncal.core.config import NavigationConfig
from mooncal.core.errors import InvalidInterval
from mooncal.core.timeutil import add_days, format_day_month, round_half_up


class RotationSpeed(str, Enum):
    SLOW = "slow"
    FAST = "fast"

    def __str__(self) -> str:
        return self.value


def _speed(speed: Union[RotationSpeed, str]) -> RotationSpeed:
    try:
        return RotationSpeed(str(speed).strip().lower())
    except ValueError as e:
        raise ValueError(f"speed must be 'slow' or 'fast' (got {speed!r})") from e


def rotation_day_offset(
    angle_degrees: float,
    speed: Union[RotationSpeed, str],
    *,
    config: Optional[NavigationConfig] = None,
) -> int:
    """
    Whole-day offset for a rotation angle.

    30 deg = 1 unit; 1 unit = 1 day (slow) or 7 days (fast).
    The angle is not clamped (negative angles go back in time).
    """
    if config is None:
        config = NavigationConfig()
    days_per_unit = config.days_per_unit[_speed(speed).value]
    units = float(angle_degrees) / float(config.degrees_per_unit)
    return round_half_up(units * days_per_unit)


def date_from_rotation(
    base: date,
    angle_degrees: float,
    speed: Union[RotationSpeed, str],
    *,
    config: Optional[NavigationConfig] = None,
) -> date:
    return add_days(base, rotation_day_offset(angle_degrees, speed, config=config))


def date_arc_dates(
    center: date,
    interval_days: int,
    total_dates: int,
    *,
    config: Optional[NavigationConfig] = None,
) -> List[date]:
    """
    Dates at center + i*interval for i in [-total//2, total//2].
    The result always has odd length and the center in the middle.
    """
    if config is None:
        config = NavigationConfig()
    if isinstance(interval_days, bool) or interval_days not in config.arc_intervals:
        allowed = ", ".join(str(x) for x in config.arc_intervals)
        raise InvalidInterval(f"interval_days must be one of {allowed} (got {interval_days!r})")

    half = int(total_dates) // 2
    return [add_days(center, i * int(interval_days)) for i in range(-half, half + 1)]


def date_arc_labels(
    center: date,
    interval_days: int,
    total_dates: int,
    *,
    config: Optional[NavigationConfig] = None,
) -> List[str]:
    return [format_day_month(d) for d in date_arc_dates(center, interval_days, total_dates, config=config)]
