# src/mooncal/core/config.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Tuple

REFERENCE_NEW_MOON_UTC = datetime(2000, 1, 6, 18, 14, 0, tzinfo=timezone.utc)
SYNODIC_MONTH_DAYS = 29.53058867
ANOMALISTIC_MONTH_DAYS = 27.55455


@dataclass(frozen=True)
class MoonPhaseConfig:
    """
    Constants for the mean-motion lunar model.

    The synodic and anomalistic periods are two independent cycles:
    phase/illumination/age follow the synodic one, distance the anomalistic one.
    """
    reference_new_moon_utc: datetime = REFERENCE_NEW_MOON_UTC
    synodic_month_days: float = SYNODIC_MONTH_DAYS
    anomalistic_month_days: float = ANOMALISTIC_MONTH_DAYS

    # perigee ~362,600 km / apogee ~405,400 km
    mean_distance_km: float = 384400.0
    distance_amplitude_km: float = 21400.0


@dataclass(frozen=True)
class RangeGuardConfig:
    window_years: int = 50
    max_span_days: int = 365


@dataclass(frozen=True)
class NavigationConfig:
    """
    Rotation control and date-arc settings.
    30 deg of rotation == one unit; a unit is 1 day (slow) or 7 days (fast).
    """
    degrees_per_unit: float = 30.0
    days_per_unit: Dict[str, int] = field(default_factory=lambda: {"slow": 1, "fast": 7})

    arc_intervals: Tuple[int, ...] = (1, 3, 7, 30)
    arc_default_interval_days: int = 7
    arc_default_total_dates: int = 12


@dataclass(frozen=True)
class MoonCalConfig:
    phase: MoonPhaseConfig = field(default_factory=MoonPhaseConfig)
    guard: RangeGuardConfig = field(default_factory=RangeGuardConfig)
    navigation: NavigationConfig = field(default_factory=NavigationConfig)
