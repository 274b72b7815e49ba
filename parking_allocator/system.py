from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Mapping

from .allocator import Allocator
from .billing import BillingCalculator
from .booking import Window
from .catalog import ResourceCatalog, SlotClass
from .config import EngineSettings, validate_settings
from .errors import AllocationError, Outcome, ParkingAllocationError
from .event_log import EventLog
from .interval_index import IntervalIndex
from .lifecycle import ReservationLifecycle
from .reservations import Reservation, ReservationBook


class ParkingSystem:
    """Store and public API of the allocation engine.

    Each instance owns its own catalog, interval index and reservations, so
    independent systems never share state. Business outcomes are returned as
    ``Outcome`` values instead of being raised.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        clock: Callable[[], datetime] | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        validate_settings(self.settings)
        self._clock: Callable[[], datetime] = clock or datetime.now

        self.event_log = event_log or EventLog(self.settings.event_log_path)
        self.catalog = ResourceCatalog()
        self.index = IntervalIndex()
        self.book = ReservationBook()
        self.allocator = Allocator(
            self.catalog,
            self.index,
            self.book,
            self.event_log,
            universal_class=self.settings.universal_class,
            max_commit_attempts=self.settings.max_commit_attempts,
            clock=self._clock,
        )
        self.lifecycle = ReservationLifecycle(self.catalog, self.index, self.book, self.event_log, clock=self._clock)
        self.billing = BillingCalculator(
            self.catalog,
            self.book,
            truncate_to_whole_hours=self.settings.truncate_to_whole_hours,
        )

    def provision_facility(self, rates: Mapping[Any, Any], zipcode: str | None = None) -> Outcome[str]:
        try:
            facility = self.catalog.provision_facility(rates, zipcode=zipcode)
        except ParkingAllocationError as error:
            return Outcome.from_exception(error)

        self.event_log.record(
            "FACILITY_PROVISIONED",
            {
                "facility_id": facility.facility_id,
                "zipcode": zipcode,
                "rates": {slot_class.value: str(rate) for slot_class, rate in facility.rates.items()},
            },
            self._clock(),
        )
        return Outcome.success(facility.facility_id)

    def provision_slot(self, facility_id: str, slot_class: SlotClass | str) -> Outcome[str]:
        try:
            slot = self.catalog.provision_slot(facility_id, slot_class)
        except ParkingAllocationError as error:
            return Outcome.from_exception(error)

        self.event_log.record(
            "SLOT_PROVISIONED",
            {"facility_id": facility_id, "slot_id": slot.slot_id, "slot_class": slot.slot_class.value},
            self._clock(),
        )
        return Outcome.success(slot.slot_id)

    def reserve(
        self,
        facility_id: str,
        slot_class: SlotClass | str,
        requester_id: str,
        start: datetime,
        end: datetime,
    ) -> Outcome[str]:
        try:
            window = Window(start, end)
            reservation = self.allocator.reserve(facility_id, slot_class, requester_id, window)
        except ParkingAllocationError as error:
            return Outcome.from_exception(error)

        if reservation is None:
            return Outcome.failure(AllocationError.NO_AVAILABILITY, "No compatible slot is free for the requested window.")
        return Outcome.success(reservation.reservation_id)

    def mark_paid(self, reservation_id: str) -> Outcome[None]:
        return self._transition(self.lifecycle.mark_paid, reservation_id)

    def check_in(self, reservation_id: str) -> Outcome[None]:
        return self._transition(self.lifecycle.check_in, reservation_id)

    def release(self, reservation_id: str) -> Outcome[None]:
        return self._transition(self.lifecycle.release, reservation_id)

    def cancel(self, reservation_id: str) -> Outcome[None]:
        return self._transition(self.lifecycle.cancel, reservation_id)

    def calculate(self, reservation_id: str) -> Outcome[Decimal]:
        try:
            return Outcome.success(self.billing.calculate(reservation_id))
        except ParkingAllocationError as error:
            return Outcome.from_exception(error)

    def free_slots(self, facility_id: str, slot_class: SlotClass | str, at_time: datetime) -> tuple[str, ...]:
        """Snapshot of slots that could serve ``slot_class`` at ``at_time``.

        Unknown facilities and classes yield an empty tuple.
        """
        try:
            return self.allocator.free_slots(facility_id, slot_class, at_time)
        except ParkingAllocationError:
            return ()

    def reservation(self, reservation_id: str) -> Reservation | None:
        try:
            return self.book.get(reservation_id).snapshot()
        except ParkingAllocationError:
            return None

    def reservations(self) -> list[Reservation]:
        return [reservation.snapshot() for reservation in self.book.all()]

    def _transition(self, operation: Callable[[str], Reservation], reservation_id: str) -> Outcome[None]:
        try:
            operation(reservation_id)
        except ParkingAllocationError as error:
            return Outcome.from_exception(error)
        return Outcome.success(None)
