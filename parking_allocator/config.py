"""Engine settings and YAML garage configuration."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Mapping

import yaml

from .allocator import DEFAULT_MAX_COMMIT_ATTEMPTS
from .catalog import SlotClass

if TYPE_CHECKING:
    from .system import ParkingSystem


@dataclass(frozen=True)
class EngineSettings:
    universal_class: SlotClass = SlotClass.LARGE
    max_commit_attempts: int = DEFAULT_MAX_COMMIT_ATTEMPTS
    truncate_to_whole_hours: bool = False
    event_log_path: Path | None = None


def validate_settings(settings: EngineSettings) -> None:
    if not isinstance(settings.universal_class, SlotClass):
        raise ValueError("universal_class must be a SlotClass")
    if settings.max_commit_attempts <= 0:
        raise ValueError("max_commit_attempts must be > 0")


def load_settings(data: Mapping[str, Any] | None = None) -> EngineSettings:
    data = data or {}
    billing = data.get("billing") or {}
    if not isinstance(billing, Mapping):
        raise ValueError("billing must be a mapping")

    event_log_path = data.get("event_log")
    settings = EngineSettings(
        universal_class=SlotClass.parse(data.get("universal_class", SlotClass.LARGE)),
        max_commit_attempts=int(data.get("max_commit_attempts", DEFAULT_MAX_COMMIT_ATTEMPTS)),
        truncate_to_whole_hours=bool(billing.get("truncate_to_whole_hours", False)),
        event_log_path=Path(str(event_log_path)) if event_log_path else None,
    )
    validate_settings(settings)
    return settings


def read_garage_file(path: str | Path) -> dict[str, Any]:
    config_path = Path(path)
    payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError(f"Garage config must be a mapping: {config_path}")
    return payload


def load_parking_system(
    path: str | Path,
    clock: Callable[[], datetime] | None = None,
) -> tuple["ParkingSystem", list[str]]:
    """Build a populated ParkingSystem from a YAML garage file.

    Returns the system and the generated facility ids in file order. A relative
    ``event_log`` path is resolved against the config file's directory.
    """
    from .system import ParkingSystem

    config_path = Path(path)
    payload = read_garage_file(config_path)
    settings = load_settings(payload)
    if settings.event_log_path is not None and not settings.event_log_path.is_absolute():
        settings = replace(settings, event_log_path=config_path.parent / settings.event_log_path)

    system = ParkingSystem(settings, clock=clock)
    facility_ids: list[str] = []
    for index, entry in enumerate(payload.get("facilities") or []):
        if not isinstance(entry, Mapping):
            raise ValueError(f"facilities[{index}] must be a mapping")

        created = system.provision_facility(entry.get("rates") or {}, zipcode=entry.get("zipcode"))
        if not created.ok:
            raise ValueError(f"facilities[{index}]: {created.message}")

        for slot_class in entry.get("slots") or []:
            slot = system.provision_slot(created.value, slot_class)
            if not slot.ok:
                raise ValueError(f"facilities[{index}]: {slot.message}")
        facility_ids.append(created.value)

    return system, facility_ids
