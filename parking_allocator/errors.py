from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class AllocationError(str, Enum):
    UNKNOWN_FACILITY = "UNKNOWN_FACILITY"
    UNKNOWN_CLASS = "UNKNOWN_CLASS"
    UNKNOWN_RESERVATION = "UNKNOWN_RESERVATION"
    INVALID_WINDOW = "INVALID_WINDOW"
    NO_AVAILABILITY = "NO_AVAILABILITY"
    CONFLICT = "CONFLICT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INVALID_RATE = "INVALID_RATE"


class ParkingAllocationError(RuntimeError):
    code: AllocationError

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownFacilityError(ParkingAllocationError, LookupError):
    code = AllocationError.UNKNOWN_FACILITY


class UnknownClassError(ParkingAllocationError, ValueError):
    code = AllocationError.UNKNOWN_CLASS


class UnknownReservationError(ParkingAllocationError, LookupError):
    code = AllocationError.UNKNOWN_RESERVATION


class InvalidWindowError(ParkingAllocationError, ValueError):
    code = AllocationError.INVALID_WINDOW


class InvalidRateError(ParkingAllocationError, ValueError):
    code = AllocationError.INVALID_RATE


class ConflictError(ParkingAllocationError):
    """Raised when a commit would overlap an interval already held by the slot."""

    code = AllocationError.CONFLICT


class InvalidTransitionError(ParkingAllocationError):
    code = AllocationError.INVALID_TRANSITION


class EventLogStorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Typed result returned by every ParkingSystem operation."""

    value: T | None = None
    error: AllocationError | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @staticmethod
    def success(value: T | None = None) -> "Outcome[T]":
        return Outcome(value=value)

    @staticmethod
    def failure(error: AllocationError, message: str | None = None) -> "Outcome[T]":
        return Outcome(error=error, message=message)

    @staticmethod
    def from_exception(error: ParkingAllocationError) -> "Outcome[T]":
        return Outcome(error=error.code, message=error.message)
