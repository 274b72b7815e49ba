from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request

from .config import load_parking_system
from .errors import AllocationError, Outcome
from .system import ParkingSystem

_STATUS_BY_ERROR = {
    AllocationError.UNKNOWN_FACILITY: 404,
    AllocationError.UNKNOWN_RESERVATION: 404,
    AllocationError.UNKNOWN_CLASS: 400,
    AllocationError.INVALID_WINDOW: 400,
    AllocationError.INVALID_RATE: 400,
    AllocationError.NO_AVAILABILITY: 409,
    AllocationError.CONFLICT: 409,
    AllocationError.INVALID_TRANSITION: 409,
}


def create_app(
    config_path: str | Path | None = None,
    now_provider: Callable[[], datetime] | None = None,
    system: ParkingSystem | None = None,
) -> Flask:
    app = Flask(__name__)
    clock: Callable[[], datetime] = now_provider or datetime.now
    if system is not None:
        engine = system
    elif config_path is not None:
        engine, _facility_ids = load_parking_system(config_path, clock=now_provider)
    else:
        engine = ParkingSystem(clock=clock)
    app.config["PARKING_SYSTEM"] = engine

    def _failure(outcome: Outcome[Any]) -> Any:
        error = outcome.error
        body = {"ok": False, "error": error.value if error is not None else None, "message": outcome.message}
        return jsonify(body), _STATUS_BY_ERROR.get(error, 400)

    def _bad_request(message: str) -> Any:
        return jsonify({"ok": False, "message": message}), 400

    def _serialize_reservation(reservation_id: str) -> dict[str, Any]:
        reservation = engine.reservation(reservation_id)
        return reservation.to_dict() if reservation is not None else {}

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.post("/api/facilities")
    def create_facility() -> Any:
        payload = request.get_json(silent=True) or {}
        rates = payload.get("rates")
        if not isinstance(rates, dict) or not rates:
            return _bad_request("rates must be a non-empty mapping of slot class to hourly rate.")

        zipcode = payload.get("zipcode")
        outcome = engine.provision_facility(rates, zipcode=str(zipcode) if zipcode is not None else None)
        if not outcome.ok:
            return _failure(outcome)
        return jsonify({"ok": True, "facility_id": outcome.value}), 201

    @app.post("/api/facilities/<facility_id>/slots")
    def create_slot(facility_id: str) -> Any:
        payload = request.get_json(silent=True) or {}
        slot_class = str(payload.get("slot_class", "")).strip()
        if not slot_class:
            return _bad_request("slot_class is required.")

        outcome = engine.provision_slot(facility_id, slot_class)
        if not outcome.ok:
            return _failure(outcome)
        return jsonify({"ok": True, "slot_id": outcome.value}), 201

    @app.get("/api/facilities/<facility_id>/free-slots")
    def list_free_slots(facility_id: str) -> Any:
        slot_class = str(request.args.get("slot_class", "")).strip()
        if not slot_class:
            return _bad_request("slot_class is required.")

        at_text = request.args.get("at")
        try:
            at_time = datetime.fromisoformat(at_text) if at_text else clock()
        except ValueError:
            return _bad_request("at must be an ISO-8601 timestamp.")

        return jsonify(
            {
                "ok": True,
                "facility_id": facility_id,
                "slot_class": slot_class.upper(),
                "at": at_time.isoformat(timespec="seconds"),
                "slot_ids": list(engine.free_slots(facility_id, slot_class, at_time)),
            }
        )

    @app.post("/api/reservations")
    def create_reservation() -> Any:
        payload = request.get_json(silent=True) or {}
        facility_id = str(payload.get("facility_id", "")).strip()
        slot_class = str(payload.get("slot_class", "")).strip()
        requester_id = str(payload.get("requester_id", "")).strip()
        if not facility_id or not slot_class or not requester_id:
            return _bad_request("facility_id, slot_class and requester_id are required.")

        try:
            start = datetime.fromisoformat(str(payload.get("start", "")))
            end = datetime.fromisoformat(str(payload.get("end", "")))
        except ValueError:
            return _bad_request("start and end must be ISO-8601 timestamps.")

        outcome = engine.reserve(facility_id, slot_class, requester_id, start, end)
        if not outcome.ok:
            return _failure(outcome)
        return jsonify({"ok": True, "reservation": _serialize_reservation(outcome.value)}), 201

    @app.get("/api/reservations/<reservation_id>")
    def get_reservation(reservation_id: str) -> Any:
        reservation = engine.reservation(reservation_id)
        if reservation is None:
            return _failure(Outcome.failure(AllocationError.UNKNOWN_RESERVATION, "Reservation not found."))
        return jsonify({"ok": True, "reservation": reservation.to_dict()})

    @app.post("/api/reservations/<reservation_id>/payment")
    def pay_reservation(reservation_id: str) -> Any:
        return _apply(engine.mark_paid, reservation_id)

    @app.post("/api/reservations/<reservation_id>/cancel")
    def cancel_reservation(reservation_id: str) -> Any:
        return _apply(engine.cancel, reservation_id)

    @app.post("/api/reservations/<reservation_id>/check-in")
    def check_in_reservation(reservation_id: str) -> Any:
        return _apply(engine.check_in, reservation_id)

    @app.post("/api/reservations/<reservation_id>/release")
    def release_reservation(reservation_id: str) -> Any:
        return _apply(engine.release, reservation_id)

    @app.get("/api/reservations/<reservation_id>/cost")
    def reservation_cost(reservation_id: str) -> Any:
        outcome = engine.calculate(reservation_id)
        if not outcome.ok:
            return _failure(outcome)
        return jsonify({"ok": True, "reservation_id": reservation_id, "amount": str(outcome.value)})

    def _apply(operation: Callable[[str], Outcome[None]], reservation_id: str) -> Any:
        outcome = operation(reservation_id)
        if not outcome.ok:
            return _failure(outcome)
        return jsonify({"ok": True, "reservation": _serialize_reservation(reservation_id)})

    return app


if __name__ == "__main__":
    app = create_app(Path(__file__).resolve().parent.parent / "config" / "garage.yaml")
    app.run(host="127.0.0.1", port=5000, debug=False)
