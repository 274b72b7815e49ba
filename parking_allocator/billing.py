from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

from .catalog import ResourceCatalog
from .reservations import ReservationBook, ReservationState

CENTS = Decimal("0.01")


class BillingCalculator:
    """Flat hourly rate per slot class.

    Durations are billed in fractional hours by default. With
    ``truncate_to_whole_hours`` partial hours are dropped before pricing.
    """

    def __init__(self, catalog: ResourceCatalog, book: ReservationBook, truncate_to_whole_hours: bool = False) -> None:
        self.catalog = catalog
        self.book = book
        self.truncate_to_whole_hours = truncate_to_whole_hours

    def calculate(self, reservation_id: str) -> Decimal:
        reservation = self.book.get(reservation_id)
        if reservation.state == ReservationState.CANCELLED:
            return Decimal("0.00")

        facility = self.catalog.facility(reservation.facility_id)
        slot = self.catalog.slot(reservation.slot_id)
        rate = facility.rate_for(slot.slot_class)

        hours = reservation.window.duration_hours()
        if self.truncate_to_whole_hours:
            hours = hours.to_integral_value(rounding=ROUND_DOWN)
        return (rate * hours).quantize(CENTS, rounding=ROUND_HALF_UP)
