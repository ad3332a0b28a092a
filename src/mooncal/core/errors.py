# src/mooncal/core/errors.py
from __future__ import annotations


class MoonPhaseError(ValueError):
    """
    Caller-input violation detected by the engine.

    `code` is stable and safe to expose to clients.
    """
    code = "moonPhaseError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)


class InvalidDate(MoonPhaseError):
    code = "invalidDate"


class DateOutOfRange(MoonPhaseError):
    code = "dateOutOfRange"


class InvalidDateRange(MoonPhaseError):
    code = "invalidDateRange"


class DateRangeTooLarge(MoonPhaseError):
    code = "dateRangeTooLarge"


class InvalidInterval(MoonPhaseError):
    code = "invalidInterval"
