from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from datetime import datetime
from threading import RLock

from .booking import Window
from .errors import ConflictError


@dataclass(frozen=True)
class IntervalRecord:
    slot_id: str
    reservation_id: str
    start: datetime
    end: datetime


class IntervalIndex:
    """Committed windows per slot, kept sorted by start time.

    Windows committed for one slot never overlap, so their ends are sorted as
    well and an overlap check only has to look at the predecessor of the
    insertion point.
    """

    def __init__(self) -> None:
        self._starts: dict[str, list[datetime]] = {}
        self._records: dict[str, list[IntervalRecord]] = {}
        self._by_reservation: dict[str, IntervalRecord] = {}
        self._lock = RLock()

    def has_overlap(self, slot_id: str, window: Window) -> bool:
        with self._lock:
            return self._find_overlap(slot_id, window) is not None

    def commit(self, slot_id: str, reservation_id: str, window: Window) -> IntervalRecord:
        with self._lock:
            if reservation_id in self._by_reservation:
                raise ValueError(f"Reservation {reservation_id} already holds an interval")

            clash = self._find_overlap(slot_id, window)
            if clash is not None:
                raise ConflictError(
                    f"Slot {slot_id} is already held by {clash.reservation_id} "
                    f"from {clash.start.isoformat()} to {clash.end.isoformat()}"
                )

            record = IntervalRecord(slot_id, reservation_id, window.start, window.end)
            starts = self._starts.setdefault(slot_id, [])
            records = self._records.setdefault(slot_id, [])
            position = bisect_left(starts, window.start)
            starts.insert(position, window.start)
            records.insert(position, record)
            self._by_reservation[reservation_id] = record
            return record

    def release(self, reservation_id: str) -> bool:
        with self._lock:
            record = self._by_reservation.pop(reservation_id, None)
            if record is None:
                return False

            starts = self._starts[record.slot_id]
            records = self._records[record.slot_id]
            position = bisect_left(starts, record.start)
            while position < len(records) and starts[position] == record.start:
                if records[position].reservation_id == reservation_id:
                    del starts[position]
                    del records[position]
                    break
                position += 1
            return True

    def covering(self, slot_id: str, instant: datetime) -> IntervalRecord | None:
        with self._lock:
            starts = self._starts.get(slot_id, [])
            position = bisect_right(starts, instant)
            if position == 0:
                return None
            candidate = self._records[slot_id][position - 1]
            return candidate if candidate.end > instant else None

    def intervals_of(self, slot_id: str) -> tuple[IntervalRecord, ...]:
        with self._lock:
            return tuple(self._records.get(slot_id, []))

    def record_for(self, reservation_id: str) -> IntervalRecord | None:
        with self._lock:
            return self._by_reservation.get(reservation_id)

    def _find_overlap(self, slot_id: str, window: Window) -> IntervalRecord | None:
        starts = self._starts.get(slot_id)
        if not starts:
            return None
        # Last committed interval starting before the requested end.
        position = bisect_left(starts, window.end)
        if position == 0:
            return None
        candidate = self._records[slot_id][position - 1]
        if candidate.end > window.start:
            return candidate
        return None
