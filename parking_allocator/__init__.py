from .booking import Window, has_time_overlap
from .catalog import Facility, ResourceCatalog, Slot, SlotClass, SlotStatus
from .config import EngineSettings, load_parking_system, load_settings
from .errors import (
	AllocationError,
	ConflictError,
	EventLogStorageError,
	InvalidTransitionError,
	InvalidRateError,
	InvalidWindowError,
	Outcome,
	ParkingAllocationError,
	UnknownClassError,
	UnknownFacilityError,
	UnknownReservationError,
)
from .event_log import EventLog
from .interval_index import IntervalIndex, IntervalRecord
from .reservations import Reservation, ReservationState
from .system import ParkingSystem

__all__ = [
	"Window",
	"has_time_overlap",
	"Facility",
	"ResourceCatalog",
	"Slot",
	"SlotClass",
	"SlotStatus",
	"EngineSettings",
	"load_parking_system",
	"load_settings",
	"AllocationError",
	"ConflictError",
	"EventLogStorageError",
	"InvalidTransitionError",
	"InvalidRateError",
	"InvalidWindowError",
	"Outcome",
	"ParkingAllocationError",
	"UnknownClassError",
	"UnknownFacilityError",
	"UnknownReservationError",
	"EventLog",
	"IntervalIndex",
	"IntervalRecord",
	"Reservation",
	"ReservationState",
	"ParkingSystem",
]
