from __future__ import annotations

from datetime import datetime
from typing import Callable

from .booking import as_local_naive
from .catalog import ResourceCatalog, SlotStatus
from .errors import InvalidTransitionError, UnknownReservationError
from .event_log import EventLog
from .interval_index import IntervalIndex
from .reservations import Reservation, ReservationBook, ReservationState

_CANCELLABLE = frozenset({ReservationState.HELD, ReservationState.PAID})
_RELEASABLE = frozenset({ReservationState.PAID, ReservationState.ACTIVE})


class ReservationLifecycle:
    """State transitions after a reservation was created.

    HELD -> PAID -> ACTIVE -> RELEASED, and HELD|PAID -> CANCELLED. Freeing an
    interval and refreshing the slot status run under the facility lock, so a
    concurrent reserve never commits between the two.
    """

    def __init__(
        self,
        catalog: ResourceCatalog,
        index: IntervalIndex,
        book: ReservationBook,
        event_log: EventLog,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.catalog = catalog
        self.index = index
        self.book = book
        self.event_log = event_log
        self._clock: Callable[[], datetime] = clock or datetime.now

    def mark_paid(self, reservation_id: str, now: datetime | None = None) -> Reservation:
        effective_now = now or self._clock()
        with self.book.lock_for(reservation_id):
            reservation = self.book.get(reservation_id)
            _require_state(reservation, {ReservationState.HELD}, "pay")
            reservation.paid = True
            reservation.state = ReservationState.PAID
            reservation.updated_at = effective_now
            snapshot = reservation.snapshot()

        self._log("RESERVATION_PAID", snapshot, effective_now)
        return snapshot

    def check_in(self, reservation_id: str, now: datetime | None = None) -> Reservation:
        effective_now = now or self._clock()
        with self.book.lock_for(reservation_id):
            reservation = self.book.get(reservation_id)
            _require_state(reservation, {ReservationState.PAID}, "check in")
            reservation.state = ReservationState.ACTIVE
            reservation.updated_at = effective_now
            with self.catalog.facility_lock(reservation.facility_id):
                self.catalog.set_status(reservation.slot_id, SlotStatus.OCCUPIED)
            snapshot = reservation.snapshot()

        self._log("RESERVATION_CHECKED_IN", snapshot, effective_now)
        return snapshot

    def release(self, reservation_id: str, now: datetime | None = None) -> Reservation:
        effective_now = now or self._clock()
        with self.book.lock_for(reservation_id):
            reservation = self.book.get(reservation_id)
            _require_state(reservation, _RELEASABLE, "release")
            reservation.state = ReservationState.RELEASED
            reservation.updated_at = effective_now
            self._free_interval(reservation, effective_now)
            snapshot = reservation.snapshot()

        self._log("RESERVATION_RELEASED", snapshot, effective_now)
        return snapshot

    def cancel(self, reservation_id: str, now: datetime | None = None) -> Reservation:
        effective_now = now or self._clock()
        with self.book.lock_for(reservation_id):
            reservation = self.book.get(reservation_id)
            if reservation.state == ReservationState.CANCELLED:
                raise UnknownReservationError(f"Reservation {reservation_id} is already cancelled")
            _require_state(reservation, _CANCELLABLE, "cancel")
            reservation.state = ReservationState.CANCELLED
            reservation.paid = False
            reservation.updated_at = effective_now
            self._free_interval(reservation, effective_now)
            snapshot = reservation.snapshot()

        self._log("RESERVATION_CANCELLED", snapshot, effective_now)
        return snapshot

    def _free_interval(self, reservation: Reservation, now: datetime) -> None:
        with self.catalog.facility_lock(reservation.facility_id):
            self.index.release(reservation.reservation_id)
            self._refresh_slot_status(reservation.slot_id, now)

    def _refresh_slot_status(self, slot_id: str, now: datetime) -> None:
        current = self.index.covering(slot_id, as_local_naive(now))
        if current is None:
            self.catalog.set_status(slot_id, SlotStatus.FREE)
            return

        holder = self.book.find(current.reservation_id)
        if holder is not None and holder.state == ReservationState.ACTIVE:
            self.catalog.set_status(slot_id, SlotStatus.OCCUPIED)
        else:
            self.catalog.set_status(slot_id, SlotStatus.RESERVED)

    def _log(self, event_type: str, reservation: Reservation, event_time: datetime) -> None:
        self.event_log.record(
            event_type,
            {
                "reservation_id": reservation.reservation_id,
                "slot_id": reservation.slot_id,
                "state": reservation.state.value,
                "paid": reservation.paid,
            },
            event_time,
        )


def _require_state(reservation: Reservation, allowed: set[ReservationState] | frozenset[ReservationState], action: str) -> None:
    if reservation.state not in allowed:
        raise InvalidTransitionError(
            f"Cannot {action} reservation {reservation.reservation_id} in state {reservation.state.value}"
        )
