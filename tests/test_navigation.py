from __future__ import annotations

from datetime import date, timedelta

import pytest

from mooncal.core.errors import InvalidInterval
from mooncal.features.navigation import (
    RotationSpeed,
    date_arc_dates,
    date_arc_labels,
    date_from_rotation,
    rotation_day_offset,
)

BASE = date(2024, 3, 15)


def test_full_turn():
    assert date_from_rotation(BASE, 360, "slow") == BASE + timedelta(days=12)
    assert date_from_rotation(BASE, 360, "fast") == BASE + timedelta(days=84)
    assert date_from_rotation(BASE, 360, RotationSpeed.FAST) == date(2024, 6, 7)


@pytest.mark.parametrize(
    "angle, speed, offset",
    [
        (0, "slow", 0),
        (30, "slow", 1),
        (30, "fast", 7),
        (15, "slow", 1),   # 0.5 day rounds up
        (14, "slow", 0),
        (45, "slow", 2),
        (10, "fast", 2),   # 2.333..
        (-45, "slow", -1),
        (-360, "slow", -12),
    ],
)
def test_day_offset(angle, speed, offset):
    assert rotation_day_offset(angle, speed) == offset


def test_speed_is_case_insensitive():
    assert rotation_day_offset(30, "FAST") == 7


def test_unknown_speed():
    with pytest.raises(ValueError):
        rotation_day_offset(30, "medium")


def test_weekly_arc():
    labels = date_arc_labels(BASE, 7, 12)
    assert len(labels) == 13
    assert labels[6] == "15/03"
    assert labels[0] == "02/02"
    assert labels[-1] == "26/04"


def test_monthly_arc():
    assert date_arc_labels(BASE, 30, 2) == ["14/02", "15/03", "14/04"]


def test_arc_is_symmetric():
    ds = date_arc_dates(BASE, 3, 9)
    assert len(ds) == 9
    mid = len(ds) // 2
    assert ds[mid] == BASE
    for i in range(1, mid + 1):
        assert (ds[mid + i] - BASE).days == -(ds[mid - i] - BASE).days == 3 * i


def test_single_date_arc():
    assert date_arc_labels(BASE, 1, 1) == ["15/03"]


def test_arc_crosses_year_boundary():
    assert date_arc_labels(date(2024, 12, 31), 1, 2) == ["30/12", "31/12", "01/01"]


@pytest.mark.parametrize("interval", [0, 2, 5, 14, 31, True])
def test_invalid_interval(interval):
    with pytest.raises(InvalidInterval):
        date_arc_labels(BASE, interval, 12)
