# src/mooncal/features/next_phase.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

from mooncal.core.config import SYNODIC_MONTH_DAYS
from mooncal.core.timeutil import add_days, round_half_up
from mooncal.features.config import MAJOR_PHASES, PhaseName


@dataclass(frozen=True)
class NextPhaseForecast:
    """
    Next major phase after a given moon age.

    - days/hours: whole-day floor + rounded remaining hours (hours may reach 24)
    - days_to_next: the exact fractional value they were derived from
    """
    date: date
    phase_name: PhaseName
    days: int
    hours: int
    days_to_next: float

    @property
    def duration(self) -> str:
        return f"{self.days} days {self.hours} hours"


def next_major_phase(age_days: float, *, synodic_month_days: float = SYNODIC_MONTH_DAYS) -> tuple[PhaseName, float]:
    """
    Return (phase_name, days_to_next) for the first major phase strictly after age_days.
    Past the last target the forecast wraps to the first one of the next cycle.
    """
    targets = [(frac * synodic_month_days, name) for frac, name in MAJOR_PHASES]

    target_age, name = targets[0]
    for a, n in targets:
        if a > age_days:
            target_age, name = a, n
            break

    days_to_next = target_age - age_days
    if days_to_next < 0:
        days_to_next += synodic_month_days
    return name, days_to_next


def forecast_next_phase(
    age_days: float,
    current: date,
    *,
    synodic_month_days: float = SYNODIC_MONTH_DAYS,
) -> NextPhaseForecast:
    name, days_to_next = next_major_phase(age_days, synodic_month_days=synodic_month_days)
    return NextPhaseForecast(
        date=add_days(current, math.ceil(days_to_next)),
        phase_name=name,
        days=int(math.floor(days_to_next)),
        hours=round_half_up((days_to_next % 1) * 24),
        days_to_next=days_to_next,
    )
