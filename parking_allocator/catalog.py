from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from itertools import count
from threading import Lock
from types import MappingProxyType
from typing import Any, Mapping

from .errors import InvalidRateError, UnknownClassError, UnknownFacilityError


class SlotClass(str, Enum):
    COMPACT = "COMPACT"
    REGULAR = "REGULAR"
    LARGE = "LARGE"

    @classmethod
    def parse(cls, value: "SlotClass | str") -> "SlotClass":
        if isinstance(value, SlotClass):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as error:
            raise UnknownClassError(f"Unknown slot class: {value!r}") from error


class SlotStatus(str, Enum):
    FREE = "FREE"
    RESERVED = "RESERVED"
    OCCUPIED = "OCCUPIED"


@dataclass
class Slot:
    slot_id: str
    facility_id: str
    slot_class: SlotClass
    status: SlotStatus = SlotStatus.FREE

    def accepts(self, requested: SlotClass, universal: SlotClass) -> bool:
        return self.slot_class == requested or self.slot_class == universal


@dataclass
class Facility:
    facility_id: str
    rates: Mapping[SlotClass, Decimal]
    zipcode: str | None = None
    slot_ids: list[str] = field(default_factory=list)

    def rate_for(self, slot_class: SlotClass) -> Decimal:
        try:
            return self.rates[slot_class]
        except KeyError as error:
            raise UnknownClassError(
                f"Facility {self.facility_id} has no rate for {slot_class.value}"
            ) from error


class ResourceCatalog:
    """Facilities and their slots, in provisioning order."""

    def __init__(self) -> None:
        self._facilities: dict[str, Facility] = {}
        self._slots: dict[str, Slot] = {}
        self._facility_locks: dict[str, Lock] = {}
        self._facility_ids = count(1)
        self._slot_ids = count(1)
        self._lock = Lock()

    def provision_facility(self, rates: Mapping[Any, Any], zipcode: str | None = None) -> Facility:
        parsed = _parse_rates(rates)
        with self._lock:
            facility = Facility(
                facility_id=f"F{next(self._facility_ids)}",
                rates=MappingProxyType(parsed),
                zipcode=zipcode,
            )
            self._facilities[facility.facility_id] = facility
            self._facility_locks[facility.facility_id] = Lock()
        return facility

    def provision_slot(self, facility_id: str, slot_class: SlotClass | str) -> Slot:
        parsed_class = SlotClass.parse(slot_class)
        with self._lock:
            facility = self._require_facility(facility_id)
            facility.rate_for(parsed_class)
            slot = Slot(slot_id=f"S{next(self._slot_ids)}", facility_id=facility_id, slot_class=parsed_class)
            self._slots[slot.slot_id] = slot
            facility.slot_ids.append(slot.slot_id)
        return slot

    def facility(self, facility_id: str) -> Facility:
        with self._lock:
            return self._require_facility(facility_id)

    def facility_lock(self, facility_id: str) -> Lock:
        """Lock serializing allocation and slot release within one facility."""
        with self._lock:
            self._require_facility(facility_id)
            return self._facility_locks[facility_id]

    def slot(self, slot_id: str) -> Slot:
        with self._lock:
            try:
                return self._slots[slot_id]
            except KeyError as error:
                raise LookupError(f"Unknown slot: {slot_id}") from error

    def slots_of(self, facility_id: str) -> tuple[Slot, ...]:
        with self._lock:
            facility = self._require_facility(facility_id)
            return tuple(self._slots[slot_id] for slot_id in facility.slot_ids)

    def set_status(self, slot_id: str, status: SlotStatus) -> None:
        with self._lock:
            self._slots[slot_id].status = status

    def _require_facility(self, facility_id: str) -> Facility:
        facility = self._facilities.get(facility_id)
        if facility is None:
            raise UnknownFacilityError(f"Unknown facility: {facility_id}")
        return facility


def _parse_rates(rates: Mapping[Any, Any]) -> dict[SlotClass, Decimal]:
    if not rates:
        raise InvalidRateError("rates must not be empty")

    parsed: dict[SlotClass, Decimal] = {}
    for raw_class, raw_rate in rates.items():
        slot_class = SlotClass.parse(raw_class)
        try:
            rate = Decimal(str(raw_rate))
        except InvalidOperation as error:
            raise InvalidRateError(f"Invalid rate for {slot_class.value}: {raw_rate!r}") from error
        if not rate.is_finite() or rate < 0:
            raise InvalidRateError(f"Rate for {slot_class.value} must be a non-negative number")
        parsed[slot_class] = rate
    return parsed
