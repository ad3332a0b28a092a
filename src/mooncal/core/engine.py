# src/mooncal/core/engine.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Union

from mooncal.features.navigation import RotationSpeed, date_arc_labels, date_from_rotation
from mooncal.features.next_phase import NextPhaseForecast, forecast_next_phase

from .config import MoonCalConfig
from .guards import RangeGuard
from .phase import MoonPhaseCalculation, PhaseCalculator
from .risetimes import GeoCoordinate, MoonRiseSetProvider, RiseSetEstimate, RiseSetStrategy, select_rise_set_strategy
from .timeutil import as_date, as_instant

log = logging.getLogger(__name__)

DateLike = Union[str, date, datetime]

CONNECTION_STATUS_BY_SOURCE = {
    "fallback": "fallback",
    "ephemeris": "online",
    "offline": "offline",
}


@dataclass(frozen=True)
class MoonPhaseObservation:
    date: date
    calculation: MoonPhaseCalculation
    rise_set: RiseSetEstimate
    next_phase: NextPhaseForecast

    @property
    def connection_status(self) -> str:
        return CONNECTION_STATUS_BY_SOURCE.get(self.rise_set.source, self.rise_set.source)


@dataclass(frozen=True)
class MoonPhaseEngine:
    """
    Stateless entry point: date (+ optional coordinate) -> lunar observables.

    `today` pins the range-guard window (tests); by default it is read per call.
    `provider_factory` overrides the ephemeris used for location-aware rise/set.
    """
    config: MoonCalConfig = field(default_factory=MoonCalConfig)
    today: Optional[date] = None
    provider_factory: Optional[Callable[[], MoonRiseSetProvider]] = None

    @property
    def guard(self) -> RangeGuard:
        return RangeGuard(config=self.config.guard, today=self.today)

    @property
    def calculator(self) -> PhaseCalculator:
        return PhaseCalculator(config=self.config.phase)

    def _strategy(self, coordinate: Optional[GeoCoordinate]) -> RiseSetStrategy:
        return select_rise_set_strategy(coordinate, provider_factory=self.provider_factory)

    def _observe(self, t_utc: datetime, strategy: RiseSetStrategy) -> MoonPhaseObservation:
        d = t_utc.date()
        calc = self.calculator.calculate(t_utc)
        return MoonPhaseObservation(
            date=d,
            calculation=calc,
            rise_set=strategy.estimate(d, calc.phase),
            next_phase=forecast_next_phase(
                calc.age,
                d,
                synodic_month_days=self.config.phase.synodic_month_days,
            ),
        )

    def compute_observation(
        self,
        when: DateLike,
        coordinate: Optional[GeoCoordinate] = None,
    ) -> MoonPhaseObservation:
        """
        Observation for a date (00:00 UTC) or an aware datetime.

        Raises
        ------
        DateOutOfRange
            If the calendar date is outside the navigable window.
        """
        t_utc = as_instant(when)
        self.guard.check_date(t_utc.date())
        return self._observe(t_utc, self._strategy(coordinate))

    def compute_range(
        self,
        start: DateLike,
        end: DateLike,
        coordinate: Optional[GeoCoordinate] = None,
    ) -> List[MoonPhaseObservation]:
        """
        One observation per calendar day in [start, end].
        The whole range is validated before the first day is computed.
        """
        s, e = self.guard.check_range(as_date(start), as_date(end))

        strategy = self._strategy(coordinate)
        log.debug("compute_range start=%s end=%s strategy=%s", s, e, strategy.source)

        out: List[MoonPhaseObservation] = []
        cur = s
        while cur <= e:
            out.append(self._observe(as_instant(cur), strategy))
            cur = cur + timedelta(days=1)
        return out

    def navigate_by_rotation(
        self,
        base: DateLike,
        angle_degrees: float,
        speed: Union[RotationSpeed, str],
    ) -> date:
        d = self.guard.check_date(as_date(base))
        return date_from_rotation(d, angle_degrees, speed, config=self.config.navigation)

    def generate_date_arc(
        self,
        center: DateLike,
        interval_days: Optional[int] = None,
        total_dates: Optional[int] = None,
    ) -> List[str]:
        nav = self.config.navigation
        if interval_days is None:
            interval_days = nav.arc_default_interval_days
        if total_dates is None:
            total_dates = nav.arc_default_total_dates

        d = self.guard.check_date(as_date(center))
        return date_arc_labels(d, interval_days, total_dates, config=nav)
