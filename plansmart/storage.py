# plansmart/storage.py
"""Full-snapshot key-value persistence.

A store holds one JSON list per key. `read` returns None for a key that was
never written; `write` replaces the previous snapshot as a whole.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .errors import StorageError
from .model import (
    Appointment,
    Task,
    appointment_from_dict,
    appointment_to_dict,
    task_from_dict,
    task_to_dict,
)

try:
    import orjson  # type: ignore
except Exception:  # pragma: no cover
    orjson = None  # type: ignore

log = logging.getLogger(__name__)

TASKS_KEY = "tasks"
APPOINTMENTS_KEY = "appointments"


def _dumps(value: Any) -> bytes:
    if orjson is not None:
        return orjson.dumps(value, option=orjson.OPT_INDENT_2) + b"\n"
    return (json.dumps(value, ensure_ascii=False, indent=2) + "\n").encode("utf-8")


def _loads(data: bytes) -> Any:
    if orjson is not None:
        return orjson.loads(data)
    return json.loads(data.decode("utf-8", errors="replace"))


class SnapshotStore:
    """Task/appointment helpers on top of read()/write()."""

    def read(self, key: str) -> Optional[List[Any]]:  # pragma: no cover - interface
        raise NotImplementedError

    def write(self, key: str, value: Sequence[Any]) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def read_tasks(self) -> Optional[List[Task]]:
        raw = self.read(TASKS_KEY)
        if raw is None:
            return None
        out: List[Task] = []
        for entry in raw:
            t = task_from_dict(entry)
            if t is None:
                log.warning("skipping stored task without a name: %r", entry)
                continue
            out.append(t)
        return out

    def write_tasks(self, tasks: Sequence[Task]) -> None:
        self.write(TASKS_KEY, [task_to_dict(t) for t in tasks])

    def read_appointments(self) -> Optional[List[Appointment]]:
        raw = self.read(APPOINTMENTS_KEY)
        if raw is None:
            return None
        out: List[Appointment] = []
        for entry in raw:
            a = appointment_from_dict(entry)
            if a is None:
                log.warning("skipping malformed stored appointment: %r", entry)
                continue
            out.append(a)
        return out

    def write_appointments(self, appointments: Sequence[Appointment]) -> None:
        self.write(APPOINTMENTS_KEY, [appointment_to_dict(a) for a in appointments])


class JsonStore(SnapshotStore):
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def read(self, key: str) -> Optional[List[Any]]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            value = _loads(path.read_bytes())
        except OSError as ex:
            raise StorageError(f"cannot read {path}: {ex}") from ex
        except ValueError as ex:
            raise StorageError(f"corrupt snapshot {path}: {ex}") from ex
        if not isinstance(value, list):
            raise StorageError(f"snapshot {path} must hold a JSON list; got {type(value).__name__}")
        return value

    def write(self, key: str, value: Sequence[Any]) -> None:
        path = self.path_for(key)
        try:
            data = _dumps(list(value))
        except (TypeError, ValueError) as ex:
            raise StorageError(f"cannot encode {key}: {ex}") from ex
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=str(path.parent))
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as ex:
            raise StorageError(f"cannot write {path}: {ex}") from ex
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        log.debug("wrote %d %s to %s", len(value), key, path)


class MemoryStore(SnapshotStore):
    def __init__(self, initial: Optional[Dict[str, List[Any]]] = None):
        self._data: Dict[str, List[Any]] = {}
        for k, v in (initial or {}).items():
            self._data[k] = json.loads(json.dumps(list(v)))

    def read(self, key: str) -> Optional[List[Any]]:
        v = self._data.get(key)
        return json.loads(json.dumps(v)) if v is not None else None

    def write(self, key: str, value: Sequence[Any]) -> None:
        self._data[key] = json.loads(json.dumps(list(value)))
