from __future__ import annotations

import logging
import time
from datetime import date
from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from mooncal.core.engine import DateLike, MoonPhaseEngine, MoonPhaseObservation
from mooncal.core.errors import MoonPhaseError
from mooncal.core.guards import utc_today
from mooncal.core.risetimes import GeoCoordinate
from mooncal.core.timeutil import as_date, round_half_up_to

router = APIRouter(prefix="/api/v1", tags=["moon-phase"])

log = logging.getLogger("mooncal.api.public")


# ============================================================
# Request / Response Models
# ============================================================
class MoonPhaseResponse(BaseModel):
    date: date
    phase_name: str
    illumination: float = Field(description="illuminated fraction in percent (0-100)")
    age: float = Field(description="days since the last new moon")
    phase_value: float = Field(description="position in the synodic month (0..1)")
    moon_rise: str = Field(description="HH:MM (UTC) or --:--")
    moon_set: str = Field(description="HH:MM (UTC) or --:--")
    next_phase_date: date
    next_phase_name: str
    phase_duration: str
    distance: int = Field(description="approximate earth-moon distance (km)")
    connection_status: Literal["online", "offline", "fallback"] = "fallback"


class MoonPhaseRangeResponse(BaseModel):
    start_date: date
    end_date: date
    days: List[MoonPhaseResponse]


class RotationRequest(BaseModel):
    base_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD")
    angle_degrees: float = Field(..., ge=0, le=360)
    speed: Literal["slow", "fast"]


class RotationResponse(BaseModel):
    date: date
    moon_phase: MoonPhaseResponse


class DateArcRequest(BaseModel):
    center_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD")
    interval_days: int = Field(7, description="one of 1, 3, 7, 30")
    total_dates: int = Field(12, ge=1, le=50)


class DateArcResponse(BaseModel):
    dates: List[str]


# ============================================================
# Engine (shared; stateless, so one instance is enough)
# ============================================================
@lru_cache(maxsize=1)
def _engine() -> MoonPhaseEngine:
    return MoonPhaseEngine()


def _validation_error(e: MoonPhaseError) -> HTTPException:
    return HTTPException(status_code=422, detail={"code": e.code, "message": str(e)})


def _resolve_observer(lat: Optional[float], lon: Optional[float]) -> Optional[GeoCoordinate]:
    if lat is None and lon is None:
        return None
    if lat is None or lon is None:
        raise HTTPException(status_code=422, detail="lat and lon must be provided together")
    try:
        return GeoCoordinate(latitude=float(lat), longitude=float(lon))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


# =========================================================
# Public JSON API (function-style, HTTP-ready)
# =========================================================
def observation_to_dict(obs: MoonPhaseObservation) -> dict:
    c = obs.calculation
    return {
        "date": obs.date.isoformat(),
        "phase_name": c.phase_name.value,
        "illumination": round_half_up_to(c.illumination * 100, 2),
        "age": round_half_up_to(c.age, 1),
        "phase_value": round_half_up_to(c.phase, 3),
        "moon_rise": obs.rise_set.rise,
        "moon_set": obs.rise_set.set,
        "next_phase_date": obs.next_phase.date.isoformat(),
        "next_phase_name": obs.next_phase.phase_name.value,
        "phase_duration": obs.next_phase.duration,
        "distance": int(c.distance_km),
        "connection_status": obs.connection_status,
    }


def get_moon_phase(
    date_: Optional[DateLike] = None,
    *,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    engine: Optional[MoonPhaseEngine] = None,
) -> dict:
    eng = engine or _engine()
    d = as_date(date_) if date_ is not None else (eng.today or utc_today())
    obs = eng.compute_observation(d, _resolve_observer(lat, lon))
    return observation_to_dict(obs)


def get_moon_phase_range(
    start: DateLike,
    end: DateLike,
    *,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    engine: Optional[MoonPhaseEngine] = None,
) -> dict:
    eng = engine or _engine()
    s = as_date(start)
    e = as_date(end)
    days = eng.compute_range(s, e, _resolve_observer(lat, lon))
    return {
        "start_date": s.isoformat(),
        "end_date": e.isoformat(),
        "days": [observation_to_dict(o) for o in days],
    }


def post_rotation(
    base_date: DateLike,
    angle_degrees: float,
    speed: str,
    *,
    engine: Optional[MoonPhaseEngine] = None,
) -> dict:
    eng = engine or _engine()
    target = eng.navigate_by_rotation(base_date, angle_degrees, speed)
    return {
        "date": target.isoformat(),
        "moon_phase": observation_to_dict(eng.compute_observation(target)),
    }


def post_date_arc(
    center_date: DateLike,
    interval_days: int = 7,
    total_dates: int = 12,
    *,
    engine: Optional[MoonPhaseEngine] = None,
) -> dict:
    eng = engine or _engine()
    return {"dates": eng.generate_date_arc(center_date, interval_days, total_dates)}


# ============================================================
# Endpoints
# ============================================================
@router.get("/moon-phase", response_model=MoonPhaseResponse)
def get_moon_phase_endpoint(
    date_str: Optional[str] = Query(None, alias="date", pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD (default: today UTC)"),
    lat: Optional[float] = Query(None, description="observer latitude (deg)"),
    lon: Optional[float] = Query(None, description="observer longitude (deg)"),
) -> Dict[str, Any]:
    try:
        return get_moon_phase(date_str, lat=lat, lon=lon)
    except MoonPhaseError as e:
        raise _validation_error(e) from e


@router.get("/moon-phase/range", response_model=MoonPhaseRangeResponse)
def get_moon_phase_range_endpoint(
    start_str: str = Query(..., alias="start_date", pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD"),
    end_str: str = Query(..., alias="end_date", pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD"),
    lat: Optional[float] = Query(None, description="observer latitude (deg)"),
    lon: Optional[float] = Query(None, description="observer longitude (deg)"),
    timing: bool = Query(False, description="log timing (diagnostics)"),
) -> Dict[str, Any]:
    t0 = time.perf_counter()
    try:
        res = get_moon_phase_range(start_str, end_str, lat=lat, lon=lon)
    except MoonPhaseError as e:
        raise _validation_error(e) from e
    t1 = time.perf_counter()

    if timing:
        log.warning(
            "timing /moon-phase/range start=%s end=%s days=%d total=%.3fs",
            start_str, end_str, len(res["days"]), t1 - t0,
        )
    return res


@router.post("/moon-phase/rotation", response_model=RotationResponse)
def post_rotation_endpoint(body: RotationRequest) -> Dict[str, Any]:
    try:
        return post_rotation(body.base_date, body.angle_degrees, body.speed)
    except MoonPhaseError as e:
        raise _validation_error(e) from e


@router.post("/moon-phase/date-arc", response_model=DateArcResponse)
def post_date_arc_endpoint(body: DateArcRequest) -> Dict[str, Any]:
    try:
        return post_date_arc(body.center_date, body.interval_days, body.total_dates)
    except MoonPhaseError as e:
        raise _validation_error(e) from e
