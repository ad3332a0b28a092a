from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Tuple, Optional, Union
from functools import lru_cache
import logging
import math
import os

from skyfield.api import Loader, wgs84
from skyfield import almanac

log = logging.getLogger(__name__)

MOONCAL_EPHEMERIS_ENV = "MOONCAL_EPHEMERIS"
MOONCAL_EPHEMERIS_PATH_ENV = "MOONCAL_EPHEMERIS_PATH"
DEFAULT_EPHEMERIS = "de440s.bsp"
FALLBACK_EPHEMERIS = "de421.bsp"


# ----------------------------
# Ephemeris path resolution
# ----------------------------
def _project_data_dir() -> Path:
    return Path(__file__).resolve().parents[4] / "data"


def _default_ephemeris_path() -> Path:
    """
    Prefer de440s (longer coverage) if present; otherwise fall back to de421.
    """
    data_dir = _project_data_dir()
    preferred = data_dir / DEFAULT_EPHEMERIS
    return preferred if preferred.exists() else data_dir / FALLBACK_EPHEMERIS


def _resolve_ephemeris_path(
    *,
    ephemeris_path: Optional[Path],
    ephemeris: Optional[Union[str, Path]],
) -> Path:
    """
    Resolution priority:
      1) ephemeris_path (Path) if provided
      2) ephemeris (str|Path) if provided:
         - absolute path -> use as is
         - relative path / filename -> resolve under project data dir
      3) MOONCAL_EPHEMERIS_PATH / MOONCAL_EPHEMERIS environment variables
      4) default: prefer de440s if present else de421
    """
    if ephemeris_path is not None:
        return ephemeris_path

    if ephemeris is None:
        env_path = os.environ.get(MOONCAL_EPHEMERIS_PATH_ENV, "").strip()
        if env_path:
            return Path(env_path).expanduser()
        ephemeris = os.environ.get(MOONCAL_EPHEMERIS_ENV, "").strip() or None

    if ephemeris is not None:
        p = ephemeris if isinstance(ephemeris, Path) else Path(ephemeris)
        if p.is_absolute():
            return p
        # relative -> treat as data_dir/<name>
        return _project_data_dir() / p

    return _default_ephemeris_path()


@lru_cache(maxsize=32)
def _topos_for_latlon(lat: float, lon: float):
    return wgs84.latlon(latitude_degrees=lat, longitude_degrees=lon)


@dataclass(frozen=True)
class SkyfieldProvider:
    """
    Skyfield-backed moonrise/moonset for a ground observer.

    - default ephemeris auto-selection (de440s > de421)
    - ephemeris coverage checked up front for a clearer error
    """

    # Legacy-style explicit Path override (highest priority if set)
    ephemeris_path: Optional[Path] = None
    # Explicit override by str|Path
    ephemeris: Optional[Union[str, Path]] = None

    def __post_init__(self) -> None:
        resolved = _resolve_ephemeris_path(
            ephemeris_path=self.ephemeris_path,
            ephemeris=self.ephemeris,
        )
        object.__setattr__(self, "ephemeris_path", resolved)

        if not self.ephemeris_path.exists():
            data_dir = _project_data_dir()
            candidates = [
                data_dir / DEFAULT_EPHEMERIS,
                data_dir / FALLBACK_EPHEMERIS,
            ]
            cand_str = "\n".join(f"  - {p}" for p in candidates)
            raise FileNotFoundError(
                f"Ephemeris not found: {self.ephemeris_path}\n"
                f"Place one of the following files under {data_dir}:\n"
                f"{cand_str}\n"
                f"Or set {MOONCAL_EPHEMERIS_PATH_ENV} / pass ephemeris_path=Path(...)."
            )

        loader = Loader(str(self.ephemeris_path.parent))
        eph = loader(self.ephemeris_path.name)
        ts = loader.timescale()

        object.__setattr__(self, "_eph", eph)
        object.__setattr__(self, "_ts", ts)
        object.__setattr__(self, "_moon", eph["moon"])

        start_utc, end_utc = self._compute_ephemeris_utc_range()
        object.__setattr__(self, "_ephem_start_utc", start_utc)
        object.__setattr__(self, "_ephem_end_utc", end_utc)

    def _compute_ephemeris_utc_range(self) -> Tuple[datetime, datetime]:
        """
        Compute coverage from SPK segments.
        Skyfield throws EphemerisRangeError deep inside; we surface a clearer error earlier.
        """
        segments = getattr(self._eph, "spk", None)
        if segments is None or not getattr(segments, "segments", None):
            return (
                datetime.min.replace(tzinfo=timezone.utc),
                datetime.max.replace(tzinfo=timezone.utc),
            )

        segs = segments.segments
        start_jd = min(s.start_jd for s in segs)
        end_jd = max(s.end_jd for s in segs)

        t0 = self._ts.tt_jd(start_jd)
        t1 = self._ts.tt_jd(end_jd)
        start_utc = t0.utc_datetime().replace(tzinfo=timezone.utc)
        end_utc = t1.utc_datetime().replace(tzinfo=timezone.utc)
        return start_utc, end_utc

    def _check_ephemeris_range(self, dt_utc: datetime) -> None:
        if dt_utc.tzinfo is None:
            raise ValueError("dt_utc must be timezone-aware")
        dt = dt_utc.astimezone(timezone.utc)
        start = self._ephem_start_utc
        end = self._ephem_end_utc

        if dt < start or dt > end:
            raise ValueError(
                "Requested datetime is outside ephemeris coverage.\n"
                f"  requested: {dt.isoformat()}\n"
                f"  ephemeris: {self.ephemeris_path}\n"
                f"  coverage : {start.isoformat()} .. {end.isoformat()}\n"
                "Hint: use de440s.bsp (place it under ./data or set MOONCAL_EPHEMERIS_PATH)."
            )

    # ---- moonrise / moonset ----
    def moonrise_moonset_utc_for_date(
        self,
        day_utc: date,
        *,
        latitude: float,
        longitude: float,
    ) -> Tuple[Optional[datetime], Optional[datetime]]:
        """
        First moonrise and first moonset inside [day 00:00 UTC, next day 00:00 UTC).
        Either side is None when the event does not happen that day.
        """
        start_utc = datetime(day_utc.year, day_utc.month, day_utc.day, tzinfo=timezone.utc)
        end_utc = start_utc + timedelta(days=1)

        self._check_ephemeris_range(start_utc)
        self._check_ephemeris_range(end_utc)

        topos = _topos_for_latlon(latitude, longitude)
        fn = almanac.risings_and_settings(self._eph, self._moon, topos)

        t0 = self._ts.from_datetime(start_utc)
        t1 = self._ts.from_datetime(end_utc)

        times, events = almanac.find_discrete(t0, t1, fn)

        rise_utc: Optional[datetime] = None
        set_utc: Optional[datetime] = None

        for t, ev in zip(times, events):
            if math.isnan(float(t.tt)):
                continue
            dt = t.utc_datetime()
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)

            if int(ev) == 1 and rise_utc is None:
                rise_utc = dt
            elif int(ev) == 0 and set_utc is None:
                set_utc = dt

        if rise_utc is None or set_utc is None:
            log.warning(
                "moonrise/moonset not found: day=%s lat=%.6f lon=%.6f start_utc=%s end_utc=%s",
                day_utc,
                latitude,
                longitude,
                start_utc.isoformat(),
                end_utc.isoformat(),
            )

        return rise_utc, set_utc


@lru_cache(maxsize=4)
def provider_cached(ephemeris: str = "", ephemeris_path: str = "") -> SkyfieldProvider:
    """
    SkyfieldProvider is heavy to build; keep one per ephemeris for the process lifetime.
    """
    ephem = ephemeris.strip() or None
    ep_path = Path(ephemeris_path).expanduser() if ephemeris_path else None
    return SkyfieldProvider(ephemeris=ephem, ephemeris_path=ep_path)
