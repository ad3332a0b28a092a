# src/mooncal/features/config.py
from __future__ import annotations

"""
Feature-level configuration / constants.

- phase names: phase fraction [0, 1) => one of 8 names (fixed partition)
- major phases: the 4 targets used for next-phase forecasting

Design goals:
- Keep boundary placement exact (output must be stable across implementations).
- Accept any float phase and normalize into [0, 1) before lookup.
"""

from enum import Enum
from typing import List, Tuple


class PhaseName(str, Enum):
    NEW_MOON = "New Moon"
    WAXING_CRESCENT = "Waxing Crescent"
    FIRST_QUARTER = "First Quarter"
    WAXING_GIBBOUS = "Waxing Gibbous"
    FULL_MOON = "Full Moon"
    WANING_GIBBOUS = "Waning Gibbous"
    LAST_QUARTER = "Last Quarter"
    WANING_CRESCENT = "Waning Crescent"

    @property
    def order(self) -> int:
        return PHASE_ORDER.index(self)

    @property
    def is_major(self) -> bool:
        return self in MAJOR_PHASE_NAMES

    def next(self) -> "PhaseName":
        return PHASE_ORDER[(self.order + 1) % len(PHASE_ORDER)]

    def previous(self) -> "PhaseName":
        return PHASE_ORDER[(self.order - 1) % len(PHASE_ORDER)]

    def __str__(self) -> str:
        return self.value


# cyclic order, starting at new moon
PHASE_ORDER: List[PhaseName] = list(PhaseName)

MAJOR_PHASE_NAMES = frozenset(
    {PhaseName.NEW_MOON, PhaseName.FIRST_QUARTER, PhaseName.FULL_MOON, PhaseName.LAST_QUARTER}
)

# ============================================================
# Phase partition
#   [lower, upper) except:
#     - New Moon also covers (0.967, 1)
#     - Waning Crescent is closed at 0.967
# ============================================================
NEW_MOON_WRAP = 0.967

PHASE_BOUNDARIES: List[Tuple[float, PhaseName]] = [
    (0.033, PhaseName.NEW_MOON),
    (0.216, PhaseName.WAXING_CRESCENT),
    (0.283, PhaseName.FIRST_QUARTER),
    (0.466, PhaseName.WAXING_GIBBOUS),
    (0.533, PhaseName.FULL_MOON),
    (0.716, PhaseName.WANING_GIBBOUS),
    (0.783, PhaseName.LAST_QUARTER),
]

# (fraction of synodic month, name) for the next-phase forecast.
# New Moon sits at 1.0: it is the restart of the cycle, not its start.
MAJOR_PHASES: List[Tuple[float, PhaseName]] = [
    (0.25, PhaseName.FIRST_QUARTER),
    (0.50, PhaseName.FULL_MOON),
    (0.75, PhaseName.LAST_QUARTER),
    (1.00, PhaseName.NEW_MOON),
]


def normalize_phase(phase: float) -> float:
    x = float(phase) % 1.0
    return x + 1.0 if x < 0 else x


def phase_name_from_fraction(phase: float) -> PhaseName:
    """
    Map a phase fraction to its PhaseName.

    >>> phase_name_from_fraction(0.30)
    <PhaseName.WAXING_GIBBOUS: 'Waxing Gibbous'>
    """
    p = normalize_phase(phase)
    if p > NEW_MOON_WRAP:
        return PhaseName.NEW_MOON
    for upper, name in PHASE_BOUNDARIES:
        if p < upper:
            return name
    return PhaseName.WANING_CRESCENT


def phase_name_from_label(label: str) -> PhaseName:
    """Accept either the display value ("Full Moon") or the member name ("FULL_MOON")."""
    s = str(label).strip()
    for p in PhaseName:
        if s == p.value or s.upper() == p.name:
            return p
    raise ValueError(f"Unknown phase name: {label!r}")
