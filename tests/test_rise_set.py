from __future__ import annotations

import logging
import os
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from mooncal.core.risetimes import (
    UNAVAILABLE,
    EphemerisRiseSet,
    GeoCoordinate,
    PhaseOffsetRiseSet,
    RiseSetStrategy,
    format_hour_of_day,
    select_rise_set_strategy,
)

UTC = timezone.utc
TOKYO = GeoCoordinate(latitude=35.681236, longitude=139.767125)


class _FakeProvider:
    def __init__(self, rise, set_):
        self.rise = rise
        self.set = set_
        self.calls = []

    def moonrise_moonset_utc_for_date(self, day_utc, *, latitude, longitude):
        self.calls.append((day_utc, latitude, longitude))
        return self.rise, self.set


class _BrokenProvider:
    def moonrise_moonset_utc_for_date(self, day_utc, *, latitude, longitude):
        raise ValueError("Requested datetime is outside ephemeris coverage.")


@pytest.mark.parametrize(
    "phase, rise, set_",
    [
        (0.0, "06:00", "18:00"),
        (0.125, "09:00", "21:00"),
        (0.25, "12:00", "00:00"),
        (0.5, "18:00", "06:00"),
        (0.75, "00:00", "12:00"),
    ],
)
def test_fallback_offsets_from_six_am(phase, rise, set_):
    est = PhaseOffsetRiseSet().estimate(date(2024, 3, 15), phase)
    assert (est.rise, est.set) == (rise, set_)
    assert est.source == "fallback"


def test_format_hour_truncates_minutes():
    assert format_hour_of_day(5.99) == "05:59"
    assert format_hour_of_day(23.5) == "23:30"


def test_strategy_selection_by_coordinate():
    assert isinstance(select_rise_set_strategy(None), PhaseOffsetRiseSet)
    s = select_rise_set_strategy(TOKYO, provider_factory=lambda: _FakeProvider(None, None))
    assert isinstance(s, EphemerisRiseSet)
    assert isinstance(s, RiseSetStrategy)


def test_ephemeris_strategy_formats_utc_times():
    provider = _FakeProvider(
        datetime(2024, 3, 15, 4, 5, 30, tzinfo=UTC),
        datetime(2024, 3, 15, 16, 41, tzinfo=UTC),
    )
    s = EphemerisRiseSet(coordinate=TOKYO, provider=provider)
    est = s.estimate(date(2024, 3, 15), 0.2)

    assert (est.rise, est.set) == ("04:05", "16:41")
    assert est.source == "ephemeris"
    assert provider.calls == [(date(2024, 3, 15), TOKYO.latitude, TOKYO.longitude)]


def test_missing_event_is_unavailable():
    s = EphemerisRiseSet(
        coordinate=TOKYO,
        provider=_FakeProvider(datetime(2024, 3, 15, 4, 5, tzinfo=UTC), None),
    )
    est = s.estimate(date(2024, 3, 15), 0.2)
    assert est.rise == "04:05"
    assert est.set == UNAVAILABLE
    assert est.has_rise and not est.has_set


def test_backend_failure_degrades_to_sentinel(caplog):
    s = EphemerisRiseSet(coordinate=TOKYO, provider=_BrokenProvider())
    with caplog.at_level(logging.ERROR, logger="mooncal.core.risetimes"):
        est = s.estimate(date(2024, 3, 15), 0.2)
    assert (est.rise, est.set) == (UNAVAILABLE, UNAVAILABLE)
    assert est.source == "offline"
    assert "moonrise/moonset calculation failed" in caplog.text


def test_provider_factory_failure_degrades_to_sentinel(caplog):
    calls = []

    def _missing():
        calls.append(1)
        raise FileNotFoundError("Ephemeris not found")

    with caplog.at_level(logging.ERROR, logger="mooncal.core.risetimes"):
        s = select_rise_set_strategy(TOKYO, provider_factory=_missing)
        ests = [s.estimate(date(2024, 3, d), 0.0) for d in range(1, 11)]

    assert calls == [1]
    assert caplog.text.count("ephemeris provider unavailable") == 1
    for est in ests:
        assert (est.rise, est.set) == (UNAVAILABLE, UNAVAILABLE)
        assert est.source == "offline"


@pytest.mark.parametrize("lat, lon", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5)])
def test_coordinate_bounds(lat, lon):
    with pytest.raises(ValueError):
        GeoCoordinate(latitude=lat, longitude=lon)


# ------------------------------------------------------------
# real ephemeris (skipped when the kernel is not available)
# ------------------------------------------------------------
def _find_ephemeris_path() -> Path | None:
    env = os.environ.get("MOONCAL_EPHEMERIS_PATH")
    if env:
        p = Path(env).expanduser()
        if p.exists():
            return p

    repo = Path(__file__).resolve().parents[1]
    for name in ("de440s.bsp", "de421.bsp"):
        p = repo / "data" / name
        if p.exists():
            return p
    return None


def _require_ephemeris() -> Path:
    p = _find_ephemeris_path()
    if p is None:
        pytest.skip("ephemeris not found (set MOONCAL_EPHEMERIS_PATH or place data/de440s.bsp)")
    return p


def test_skyfield_moonrise_moonset_tokyo():
    ephem_path = _require_ephemeris()
    from mooncal.core.providers.skyfield_provider import SkyfieldProvider

    provider = SkyfieldProvider(ephemeris_path=ephem_path)
    rise, set_ = provider.moonrise_moonset_utc_for_date(
        date(2024, 3, 15),
        latitude=TOKYO.latitude,
        longitude=TOKYO.longitude,
    )
    assert rise is not None or set_ is not None
    for t in (rise, set_):
        if t is not None:
            assert t.tzinfo is not None
            assert t.date() == date(2024, 3, 15)

    est = EphemerisRiseSet(coordinate=TOKYO, provider=provider).estimate(date(2024, 3, 15), 0.2)
    assert est.source == "ephemeris"
    assert est.has_rise or est.has_set


def test_default_ephemeris_prefers_de440s(tmp_path, monkeypatch):
    from mooncal.core.providers import skyfield_provider as sp

    monkeypatch.delenv(sp.MOONCAL_EPHEMERIS_PATH_ENV, raising=False)
    monkeypatch.delenv(sp.MOONCAL_EPHEMERIS_ENV, raising=False)
    monkeypatch.setattr(sp, "_project_data_dir", lambda: tmp_path)

    resolved = sp._resolve_ephemeris_path(ephemeris_path=None, ephemeris=None)
    assert resolved == tmp_path / sp.FALLBACK_EPHEMERIS
    with pytest.raises(FileNotFoundError, match="Ephemeris not found"):
        sp.SkyfieldProvider()

    (tmp_path / sp.DEFAULT_EPHEMERIS).touch()
    assert sp._resolve_ephemeris_path(ephemeris_path=None, ephemeris=None) == tmp_path / "de440s.bsp"
