from __future__ import annotations

from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any
import shutil

import yaml

from .errors import EventLogStorageError


class EventLog:
    """Append-only record of engine events.

    Events are always kept in memory. When ``path`` is given they are also
    written to a YAML list of ``{event_time, event_type, payload}`` rows.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._events: list[dict[str, Any]] = []
        self._lock = Lock()
        if self.path is not None:
            self._ensure_file(self.path)
            self._events = self._read_yaml_list(self.path)

    @property
    def events(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._events)

    def event_types(self) -> list[str]:
        return [str(event["event_type"]) for event in self.events]

    def record(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        row = {"event_time": timestamp, "event_type": event_type, "payload": payload}
        with self._lock:
            self._events.append(row)
            if self.path is not None:
                self._write_yaml_list(self.path, self._events)

    def _ensure_file(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        if not path.exists():
            path.write_text("[]\n", encoding="utf-8")

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            path.write_text("[]\n", encoding="utf-8")
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            return self._recover_corrupted_yaml(path, error)

        if payload is None:
            return []
        if not isinstance(payload, list):
            return self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))

        return [row for row in payload if isinstance(row, dict)]

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise EventLogStorageError(f"Failed to write event log: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> list[dict[str, Any]]:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            pass

        recovered = [
            {
                "event_time": datetime.now().isoformat(timespec="seconds"),
                "event_type": "YAML_RECOVERED",
                "payload": {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            }
        ]
        self._write_yaml_list(path, recovered)
        return recovered
