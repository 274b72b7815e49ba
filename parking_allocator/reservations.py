from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from itertools import count
from threading import Lock
from typing import Any

from .booking import Window
from .errors import UnknownReservationError


class ReservationState(str, Enum):
    HELD = "HELD"
    PAID = "PAID"
    ACTIVE = "ACTIVE"
    RELEASED = "RELEASED"
    CANCELLED = "CANCELLED"


# Reservations in these states still hold their interval.
COMMITTED_STATES = frozenset({ReservationState.HELD, ReservationState.PAID, ReservationState.ACTIVE})


@dataclass
class Reservation:
    reservation_id: str
    facility_id: str
    slot_id: str
    requester_id: str
    window: Window
    created_at: datetime
    updated_at: datetime
    paid: bool = False
    state: ReservationState = ReservationState.HELD

    @property
    def start(self) -> datetime:
        return self.window.start

    @property
    def end(self) -> datetime:
        return self.window.end

    @property
    def is_committed(self) -> bool:
        return self.state in COMMITTED_STATES

    def snapshot(self) -> "Reservation":
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "facility_id": self.facility_id,
            "slot_id": self.slot_id,
            "requester_id": self.requester_id,
            "start": self.start.isoformat(timespec="seconds"),
            "end": self.end.isoformat(timespec="seconds"),
            "paid": self.paid,
            "state": self.state.value,
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "updated_at": self.updated_at.isoformat(timespec="seconds"),
        }


class ReservationBook:
    """Owns every reservation ever created, cancelled ones included."""

    def __init__(self) -> None:
        self._reservations: dict[str, Reservation] = {}
        self._locks: dict[str, Lock] = {}
        self._ids = count(1)
        self._lock = Lock()

    def next_id(self) -> str:
        with self._lock:
            return f"R{next(self._ids)}"

    def add(self, reservation: Reservation) -> None:
        with self._lock:
            self._reservations[reservation.reservation_id] = reservation
            self._locks[reservation.reservation_id] = Lock()

    def find(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            return self._reservations.get(reservation_id)

    def get(self, reservation_id: str) -> Reservation:
        reservation = self.find(reservation_id)
        if reservation is None:
            raise UnknownReservationError(f"Unknown reservation: {reservation_id}")
        return reservation

    def lock_for(self, reservation_id: str) -> Lock:
        with self._lock:
            lock = self._locks.get(reservation_id)
        if lock is None:
            raise UnknownReservationError(f"Unknown reservation: {reservation_id}")
        return lock

    def all(self) -> list[Reservation]:
        with self._lock:
            return list(self._reservations.values())
