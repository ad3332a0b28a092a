# src/mooncal/core/risetimes.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Optional, Protocol, Tuple, runtime_checkable

log = logging.getLogger(__name__)

UNAVAILABLE = "--:--"

# new moon is assumed to rise at 06:00
FALLBACK_BASE_RISE_HOUR = 6.0
FALLBACK_SET_AFTER_HOURS = 12.0


@dataclass(frozen=True)
class GeoCoordinate:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        lat = float(self.latitude)
        lon = float(self.longitude)
        if not (-90.0 <= lat <= 90.0):
            raise ValueError(f"latitude must be within [-90, 90] (got {self.latitude})")
        if not (-180.0 <= lon <= 180.0):
            raise ValueError(f"longitude must be within [-180, 180] (got {self.longitude})")
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)


@dataclass(frozen=True)
class RiseSetEstimate:
    rise: str
    set: str
    source: str

    @property
    def has_rise(self) -> bool:
        return self.rise != UNAVAILABLE

    @property
    def has_set(self) -> bool:
        return self.set != UNAVAILABLE


@runtime_checkable
class MoonRiseSetProvider(Protocol):
    def moonrise_moonset_utc_for_date(
        self,
        day_utc: date,
        *,
        latitude: float,
        longitude: float,
    ) -> Tuple[Optional[datetime], Optional[datetime]]: ...


@runtime_checkable
class RiseSetStrategy(Protocol):
    source: str

    def estimate(self, day: date, phase: float) -> RiseSetEstimate: ...


def format_hour_of_day(h: float) -> str:
    """Fractional hour -> HH:MM, minutes truncated."""
    hours = int(math.floor(h))
    minutes = int(math.floor((h - hours) * 60))
    return f"{hours:02d}:{minutes:02d}"


def format_utc_time(dt: Optional[datetime]) -> str:
    if dt is None:
        return UNAVAILABLE
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%H:%M")


@dataclass(frozen=True)
class PhaseOffsetRiseSet:
    """
    Location-less approximation: the moon rises phase*24 hours after 06:00
    and sets 12 hours after rising.
    """
    source: str = "fallback"

    def estimate(self, day: date, phase: float) -> RiseSetEstimate:
        rise_hour = FALLBACK_BASE_RISE_HOUR + phase * 24
        set_hour = rise_hour + FALLBACK_SET_AFTER_HOURS
        return RiseSetEstimate(
            rise=format_hour_of_day(rise_hour % 24),
            set=format_hour_of_day(set_hour % 24),
            source=self.source,
        )


OFFLINE_SOURCE = "offline"


@dataclass(frozen=True)
class EphemerisRiseSet:
    """
    Moonrise/moonset for a coordinate from an ephemeris provider.

    Missing events come back as the "--:--" sentinel.
    Without a provider, or when the backend fails for a day, both times are
    "--:--" and the estimate is tagged "offline".
    """
    coordinate: GeoCoordinate
    provider: Optional[MoonRiseSetProvider]
    source: str = "ephemeris"

    def _offline(self) -> RiseSetEstimate:
        return RiseSetEstimate(rise=UNAVAILABLE, set=UNAVAILABLE, source=OFFLINE_SOURCE)

    def estimate(self, day: date, phase: float) -> RiseSetEstimate:
        if self.provider is None:
            return self._offline()
        try:
            rise_utc, set_utc = self.provider.moonrise_moonset_utc_for_date(
                day,
                latitude=self.coordinate.latitude,
                longitude=self.coordinate.longitude,
            )
        except Exception:
            log.exception(
                "moonrise/moonset calculation failed: date=%s lat=%.6f lon=%.6f",
                day,
                self.coordinate.latitude,
                self.coordinate.longitude,
            )
            return self._offline()

        return RiseSetEstimate(
            rise=format_utc_time(rise_utc),
            set=format_utc_time(set_utc),
            source=self.source,
        )


def _default_provider() -> MoonRiseSetProvider:
    from .providers.skyfield_provider import provider_cached

    return provider_cached()


def select_rise_set_strategy(
    coordinate: Optional[GeoCoordinate],
    *,
    provider_factory: Optional[Callable[[], MoonRiseSetProvider]] = None,
) -> RiseSetStrategy:
    """
    Pick the rise/set variant for a call.
    The ephemeris provider is resolved here, once; a failure is logged once
    and leaves the strategy without a provider.
    """
    if coordinate is None:
        return PhaseOffsetRiseSet()

    factory = provider_factory or _default_provider
    try:
        provider: Optional[MoonRiseSetProvider] = factory()
    except Exception:
        log.exception(
            "ephemeris provider unavailable: lat=%.6f lon=%.6f",
            coordinate.latitude,
            coordinate.longitude,
        )
        provider = None
    return EphemerisRiseSet(coordinate=coordinate, provider=provider)
