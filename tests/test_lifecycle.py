import unittest
from datetime import datetime

from parking_allocator import AllocationError, ParkingSystem, ReservationState, SlotStatus

RATES = {"COMPACT": 2.0, "REGULAR": 3.0, "LARGE": 5.0}


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 2, 24, hour, minute)


class TestReservationLifecycle(unittest.TestCase):
    def setUp(self) -> None:
        self.now = _at(10, 30)
        self.system = ParkingSystem(clock=lambda: self.now)
        self.facility_id = self.system.provision_facility(RATES).value
        self.slot_id = self.system.provision_slot(self.facility_id, "REGULAR").value
        self.reservation_id = self.system.reserve(self.facility_id, "REGULAR", "alice", _at(10), _at(12)).value

    def _state(self) -> ReservationState:
        return self.system.reservation(self.reservation_id).state

    def _slot_status(self) -> SlotStatus:
        return self.system.catalog.slot(self.slot_id).status

    def test_mark_paid_moves_held_to_paid(self) -> None:
        outcome = self.system.mark_paid(self.reservation_id)

        self.assertTrue(outcome.ok)
        reservation = self.system.reservation(self.reservation_id)
        self.assertEqual(reservation.state, ReservationState.PAID)
        self.assertTrue(reservation.paid)

    def test_mark_paid_twice_is_invalid_transition(self) -> None:
        self.system.mark_paid(self.reservation_id)

        self.assertEqual(self.system.mark_paid(self.reservation_id).error, AllocationError.INVALID_TRANSITION)

    def test_mark_paid_after_cancel_is_invalid_transition(self) -> None:
        self.system.cancel(self.reservation_id)

        self.assertEqual(self.system.mark_paid(self.reservation_id).error, AllocationError.INVALID_TRANSITION)
        self.assertFalse(self.system.reservation(self.reservation_id).paid)

    def test_mark_paid_unknown_reservation(self) -> None:
        self.assertEqual(self.system.mark_paid("R404").error, AllocationError.UNKNOWN_RESERVATION)

    def test_cancel_frees_capacity_for_same_window(self) -> None:
        self.system.mark_paid(self.reservation_id)
        blocked = self.system.reserve(self.facility_id, "REGULAR", "bob", _at(10), _at(12))
        self.assertEqual(blocked.error, AllocationError.NO_AVAILABILITY)

        cancelled = self.system.cancel(self.reservation_id)
        retried = self.system.reserve(self.facility_id, "REGULAR", "bob", _at(10), _at(12))

        self.assertTrue(cancelled.ok)
        self.assertEqual(self._state(), ReservationState.CANCELLED)
        self.assertFalse(self.system.reservation(self.reservation_id).paid)
        self.assertTrue(retried.ok)
        self.assertEqual(self.system.reservation(retried.value).slot_id, self.slot_id)

    def test_cancel_twice_reports_unknown_and_keeps_state(self) -> None:
        self.system.cancel(self.reservation_id)
        replacement = self.system.reserve(self.facility_id, "REGULAR", "bob", _at(10), _at(12)).value

        second = self.system.cancel(self.reservation_id)

        self.assertEqual(second.error, AllocationError.UNKNOWN_RESERVATION)
        self.assertEqual(self.system.reservation(replacement).state, ReservationState.HELD)
        self.assertIsNotNone(self.system.index.record_for(replacement))
        self.assertEqual(self._slot_status(), SlotStatus.RESERVED)

    def test_cancel_unknown_reservation(self) -> None:
        self.assertEqual(self.system.cancel("R404").error, AllocationError.UNKNOWN_RESERVATION)

    def test_cancelled_reservation_remains_for_history(self) -> None:
        self.system.cancel(self.reservation_id)

        history = self.system.reservations()
        self.assertEqual([row.reservation_id for row in history], [self.reservation_id])
        self.assertEqual(history[0].start, _at(10))
        self.assertEqual(history[0].end, _at(12))

    def test_cancel_resets_slot_status_when_nothing_covers_now(self) -> None:
        self.assertEqual(self._slot_status(), SlotStatus.RESERVED)

        self.system.cancel(self.reservation_id)

        self.assertEqual(self._slot_status(), SlotStatus.FREE)

    def test_cancel_keeps_status_when_other_interval_covers_now(self) -> None:
        self.now = _at(13)
        later = self.system.reserve(self.facility_id, "REGULAR", "bob", _at(12, 30), _at(14)).value

        self.system.cancel(self.reservation_id)

        self.assertEqual(self._slot_status(), SlotStatus.RESERVED)
        self.assertEqual(self.system.reservation(later).state, ReservationState.HELD)

    def test_check_in_and_release(self) -> None:
        self.assertEqual(self.system.check_in(self.reservation_id).error, AllocationError.INVALID_TRANSITION)
        self.system.mark_paid(self.reservation_id)

        checked_in = self.system.check_in(self.reservation_id)
        self.assertTrue(checked_in.ok)
        self.assertEqual(self._state(), ReservationState.ACTIVE)
        self.assertEqual(self._slot_status(), SlotStatus.OCCUPIED)
        self.assertEqual(self.system.cancel(self.reservation_id).error, AllocationError.INVALID_TRANSITION)

        released = self.system.release(self.reservation_id)
        self.assertTrue(released.ok)
        self.assertEqual(self._state(), ReservationState.RELEASED)
        self.assertEqual(self._slot_status(), SlotStatus.FREE)
        self.assertIsNone(self.system.index.record_for(self.reservation_id))
        self.assertEqual(self.system.release(self.reservation_id).error, AllocationError.INVALID_TRANSITION)

    def test_release_requires_payment(self) -> None:
        self.assertEqual(self.system.release(self.reservation_id).error, AllocationError.INVALID_TRANSITION)
        self.assertEqual(self._state(), ReservationState.HELD)

    def test_transitions_are_logged(self) -> None:
        self.system.mark_paid(self.reservation_id)
        self.system.cancel(self.reservation_id)

        event_types = self.system.event_log.event_types()
        self.assertIn("RESERVATION_PAID", event_types)
        self.assertIn("RESERVATION_CANCELLED", event_types)


if __name__ == "__main__":
    unittest.main()
