from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
import traceback

from parking_allocator import load_parking_system

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "garage.yaml"


def main() -> int:
    print("[INFO] Parking Allocator Quick Check")
    print(f"[INFO] Loading garage config: {CONFIG_PATH}")

    system, facility_ids = load_parking_system(CONFIG_PATH)
    facility_id = facility_ids[0]
    print(f"[OK] Facilities loaded: {', '.join(facility_ids)}")

    start = datetime.now().replace(microsecond=0)
    end = start + timedelta(hours=2)

    reserved = system.reserve(facility_id, "REGULAR", "alice", start, end)
    if not reserved.ok:
        print(f"[FAIL] Reservation rejected: {reserved.error.value}")
        return 1
    reservation_id = reserved.value
    reservation = system.reservation(reservation_id)
    print(f"[OK] Reserved! Reservation ID: {reservation_id} (slot {reservation.slot_id})")

    cost = system.calculate(reservation_id)
    print(f"[OK] Cost: {cost.value}")

    paid = system.mark_paid(reservation_id)
    print(f"[OK] Payment recorded: {paid.ok}")

    overlapping = system.reserve(facility_id, "REGULAR", "bob", start + timedelta(minutes=30), end)
    if overlapping.ok:
        print(f"[OK] Overlapping REGULAR request served by slot {system.reservation(overlapping.value).slot_id}")
    else:
        print(f"[OK] Overlapping REGULAR request rejected: {overlapping.error.value}")

    print("[INFO] Reservations:")
    for row in system.reservations():
        print(
            f"  ID: {row.reservation_id}, Slot: {row.slot_id}, Paid: {row.paid}, "
            f"State: {row.state.value}, Start: {row.start.isoformat(timespec='minutes')}, "
            f"End: {row.end.isoformat(timespec='minutes')}"
        )

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
