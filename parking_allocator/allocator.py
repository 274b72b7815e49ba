from __future__ import annotations

from datetime import datetime
from typing import Callable

from .booking import Window, as_local_naive
from .catalog import ResourceCatalog, SlotClass, SlotStatus
from .errors import ConflictError
from .event_log import EventLog
from .interval_index import IntervalIndex
from .reservations import Reservation, ReservationBook

DEFAULT_MAX_COMMIT_ATTEMPTS = 3


class Allocator:
    """First-fit slot assignment.

    Scanning a facility's slots, checking the interval index and committing the
    chosen interval all happen under that facility's lock. ``IntervalIndex.commit``
    re-validates on its own, and a ``ConflictError`` raised there moves the scan
    on to the next candidate until ``max_commit_attempts`` conflicts were seen.
    """

    def __init__(
        self,
        catalog: ResourceCatalog,
        index: IntervalIndex,
        book: ReservationBook,
        event_log: EventLog,
        universal_class: SlotClass = SlotClass.LARGE,
        max_commit_attempts: int = DEFAULT_MAX_COMMIT_ATTEMPTS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if max_commit_attempts <= 0:
            raise ValueError("max_commit_attempts must be greater than zero")
        self.catalog = catalog
        self.index = index
        self.book = book
        self.event_log = event_log
        self.universal_class = universal_class
        self.max_commit_attempts = max_commit_attempts
        self._clock: Callable[[], datetime] = clock or datetime.now

    def reserve(
        self,
        facility_id: str,
        slot_class: SlotClass | str,
        requester_id: str,
        window: Window,
        now: datetime | None = None,
    ) -> Reservation | None:
        """Hold the first compatible free slot for ``window``.

        Returns None when no slot can take the window.
        """
        requested = SlotClass.parse(slot_class)
        facility_lock = self.catalog.facility_lock(facility_id)
        effective_now = now or self._clock()

        created: Reservation | None = None
        conflicts = 0
        with facility_lock:
            for slot in self.catalog.slots_of(facility_id):
                if not slot.accepts(requested, self.universal_class):
                    continue
                if self.index.has_overlap(slot.slot_id, window):
                    continue

                reservation_id = self.book.next_id()
                try:
                    self.index.commit(slot.slot_id, reservation_id, window)
                except ConflictError as error:
                    conflicts += 1
                    self.event_log.record(
                        "RESERVATION_CONFLICT_RETRY",
                        {"facility_id": facility_id, "slot_id": slot.slot_id, "attempt": conflicts, "reason": str(error)},
                        effective_now,
                    )
                    if conflicts >= self.max_commit_attempts:
                        raise ConflictError(
                            f"Gave up after {conflicts} conflicting commits in facility {facility_id}"
                        ) from error
                    continue

                created = Reservation(
                    reservation_id=reservation_id,
                    facility_id=facility_id,
                    slot_id=slot.slot_id,
                    requester_id=requester_id,
                    window=window,
                    created_at=effective_now,
                    updated_at=effective_now,
                )
                self.book.add(created)
                if slot.status == SlotStatus.FREE:
                    self.catalog.set_status(slot.slot_id, SlotStatus.RESERVED)
                break

        if created is None:
            self.event_log.record(
                "RESERVATION_UNAVAILABLE",
                {
                    "facility_id": facility_id,
                    "slot_class": requested.value,
                    "requester_id": requester_id,
                    "start": window.start.isoformat(timespec="seconds"),
                    "end": window.end.isoformat(timespec="seconds"),
                },
                effective_now,
            )
            return None

        self.event_log.record(
            "RESERVATION_CREATED",
            {
                "reservation_id": created.reservation_id,
                "facility_id": facility_id,
                "slot_id": created.slot_id,
                "requester_id": requester_id,
                "start": window.start.isoformat(timespec="seconds"),
                "end": window.end.isoformat(timespec="seconds"),
            },
            effective_now,
        )
        return created

    def free_slots(self, facility_id: str, slot_class: SlotClass | str, at_time: datetime) -> tuple[str, ...]:
        """Compatible slots with no committed interval covering ``at_time``."""
        requested = SlotClass.parse(slot_class)
        instant = as_local_naive(at_time)
        return tuple(
            slot.slot_id
            for slot in self.catalog.slots_of(facility_id)
            if slot.accepts(requested, self.universal_class) and self.index.covering(slot.slot_id, instant) is None
        )

