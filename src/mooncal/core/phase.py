# src/mooncal/core/phase.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime

from mooncal.features.config import PhaseName, phase_name_from_fraction

from .config import MoonPhaseConfig
from .timeutil import days_between, require_utc, round_half_up


def positive_mod(x: float, m: float) -> float:
    """x mod m in [0, m) regardless of the sign of x."""
    return ((x % m) + m) % m


def illumination_from_phase(phase: float) -> float:
    """Triangular wave: 0 at new moon, 1 at full moon."""
    if phase < 0.5:
        return phase * 2
    return (1 - phase) * 2


@dataclass(frozen=True)
class MoonPhaseCalculation:
    phase: float
    illumination: float
    phase_name: PhaseName
    age: float
    distance_km: int


@dataclass(frozen=True)
class PhaseCalculator:
    """
    Mean-motion lunar model anchored at a known new moon.

    Two independent cycles:
      - synodic month  -> phase / illumination / age
      - anomalistic month -> distance
    """
    config: MoonPhaseConfig = field(default_factory=MoonPhaseConfig)

    def elapsed_days(self, t_utc: datetime) -> float:
        """Signed fractional days since the reference new moon."""
        t_utc = require_utc(t_utc, "t_utc")
        return days_between(self.config.reference_new_moon_utc, t_utc)

    def phase(self, t_utc: datetime) -> float:
        p = self.config.synodic_month_days
        return positive_mod(self.elapsed_days(t_utc), p) / p

    def distance_km(self, elapsed_days: float) -> int:
        a = self.config.anomalistic_month_days
        age_anomalistic = positive_mod(elapsed_days, a)
        d = self.config.mean_distance_km - self.config.distance_amplitude_km * math.cos(
            2 * math.pi * age_anomalistic / a
        )
        return round_half_up(d)

    def calculate(self, t_utc: datetime) -> MoonPhaseCalculation:
        elapsed = self.elapsed_days(t_utc)
        p = self.config.synodic_month_days

        age = positive_mod(elapsed, p)
        phase = age / p

        return MoonPhaseCalculation(
            phase=phase,
            illumination=illumination_from_phase(phase),
            phase_name=phase_name_from_fraction(phase),
            age=age,
            distance_km=self.distance_km(elapsed),
        )
