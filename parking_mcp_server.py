from __future__ import annotations

from datetime import datetime
import os
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from parking_allocator import load_parking_system

mcp = FastMCP(
    "Parking Allocation MCP Server",
    instructions="Reserve, pay for and cancel parking slots through the parking_allocator engine.",
    json_response=True,
)

CONFIG_PATH = Path(os.environ.get("PARKING_CONFIG", Path(__file__).parent / "config" / "garage.yaml"))
SYSTEM, FACILITY_IDS = load_parking_system(CONFIG_PATH)


def _outcome_payload(outcome: Any, **extra: Any) -> dict[str, Any]:
    if outcome.ok:
        return {"ok": True, **extra}
    return {"ok": False, "error": outcome.error.value, "message": outcome.message}


@mcp.resource("parking://facilities")
async def list_facilities() -> list[str]:
    """List facility ids loaded from the garage config."""
    return list(FACILITY_IDS)


@mcp.tool()
def list_free_slots(facility_id: str, slot_class: str, at_iso: str | None = None) -> list[str]:
    """Return slot ids that could serve the class at the given instant (default: now)."""
    at_time = datetime.fromisoformat(at_iso) if at_iso else datetime.now()
    return list(SYSTEM.free_slots(facility_id, slot_class, at_time))


@mcp.tool()
def reserve_slot(facility_id: str, slot_class: str, requester_id: str, start_iso: str, end_iso: str) -> dict[str, Any]:
    """Hold the first free compatible slot for [start, end)."""
    outcome = SYSTEM.reserve(
        facility_id,
        slot_class,
        requester_id,
        datetime.fromisoformat(start_iso),
        datetime.fromisoformat(end_iso),
    )
    if not outcome.ok:
        return _outcome_payload(outcome)
    reservation = SYSTEM.reservation(outcome.value)
    return _outcome_payload(outcome, reservation=reservation.to_dict() if reservation else {})


@mcp.tool()
def pay_reservation(reservation_id: str) -> dict[str, Any]:
    """Mark a held reservation as paid."""
    return _outcome_payload(SYSTEM.mark_paid(reservation_id), reservation_id=reservation_id)


@mcp.tool()
def cancel_reservation(reservation_id: str) -> dict[str, Any]:
    """Cancel a held or paid reservation and free its slot."""
    return _outcome_payload(SYSTEM.cancel(reservation_id), reservation_id=reservation_id)


@mcp.tool()
def reservation_cost(reservation_id: str) -> dict[str, Any]:
    """Return the amount owed for a reservation."""
    outcome = SYSTEM.calculate(reservation_id)
    return _outcome_payload(outcome, reservation_id=reservation_id, amount=str(outcome.value))


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
