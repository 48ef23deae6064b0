"""Per-owner application storage: in-memory, or one JSON file with file locking."""
from __future__ import annotations

import copy
import fcntl
import json
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from applytrack.errors import StorageError
from applytrack.log import get_logger
from applytrack.models import Application

log = get_logger(__name__)


class ApplicationStore(ABC):
    """Single-record reads and writes, always scoped by owner."""

    @abstractmethod
    def add(self, app: Application) -> None:
        ...

    @abstractmethod
    def get(self, user_id: str, app_id: str) -> Application | None:
        ...

    @abstractmethod
    def save(self, app: Application) -> bool:
        """Replace the stored record; False if it no longer exists."""

    @abstractmethod
    def delete(self, user_id: str, app_id: str) -> bool:
        ...

    @abstractmethod
    def list_for(self, user_id: str) -> list[Application]:
        ...


class InMemoryApplicationStore(ApplicationStore):
    def __init__(self) -> None:
        self._rows: dict[str, Application] = {}
        self._mutex = threading.Lock()

    def add(self, app: Application) -> None:
        with self._mutex:
            self._rows[app.id] = copy.deepcopy(app)

    def get(self, user_id: str, app_id: str) -> Application | None:
        with self._mutex:
            app = self._rows.get(app_id)
            if app is None or app.user_id != user_id:
                return None
            return copy.deepcopy(app)

    def save(self, app: Application) -> bool:
        with self._mutex:
            current = self._rows.get(app.id)
            if current is None or current.user_id != app.user_id:
                return False
            self._rows[app.id] = copy.deepcopy(app)
            return True

    def delete(self, user_id: str, app_id: str) -> bool:
        with self._mutex:
            app = self._rows.get(app_id)
            if app is None or app.user_id != user_id:
                return False
            del self._rows[app_id]
            return True

    def list_for(self, user_id: str) -> list[Application]:
        with self._mutex:
            return [copy.deepcopy(a) for a in self._rows.values() if a.user_id == user_id]


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


def _decode(path: Path, raw: str) -> dict[str, dict]:
    if not raw.strip():
        return {}
    try:
        rows = json.loads(raw)
    except ValueError as exc:
        raise StorageError(f"{path.name} is not valid JSON: {exc}") from exc
    if not isinstance(rows, dict):
        raise StorageError(f"{path.name} does not hold an object of applications")
    return rows


class JsonApplicationStore(ApplicationStore):
    """All applications in one JSON document keyed by id."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @contextmanager
    def _open(self, exclusive: bool) -> Iterator[tuple[dict[str, dict], object]]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a+", encoding="utf-8") as f:
            _lock(f, exclusive=exclusive)
            try:
                f.seek(0)
                raw = f.read()
                rows = _decode(self.path, raw)
                yield rows, f
            finally:
                _unlock(f)

    def _read(self) -> dict[str, dict]:
        with self._open(exclusive=False) as (rows, _):
            return rows

    @staticmethod
    def _write(f, rows: dict[str, dict]) -> None:
        f.seek(0)
        f.truncate()
        json.dump(rows, f, indent=2, ensure_ascii=False)
        f.flush()

    def add(self, app: Application) -> None:
        with self._open(exclusive=True) as (rows, f):
            rows[app.id] = app.to_dict()
            self._write(f, rows)
        log.debug("Stored application %s for %s", app.id, app.user_id)

    def get(self, user_id: str, app_id: str) -> Application | None:
        row = self._read().get(app_id)
        if row is None or row.get("userId") != user_id:
            return None
        return Application.from_dict(row)

    def save(self, app: Application) -> bool:
        with self._open(exclusive=True) as (rows, f):
            row = rows.get(app.id)
            if row is None or row.get("userId") != app.user_id:
                return False
            rows[app.id] = app.to_dict()
            self._write(f, rows)
        return True

    def delete(self, user_id: str, app_id: str) -> bool:
        with self._open(exclusive=True) as (rows, f):
            row = rows.get(app_id)
            if row is None or row.get("userId") != user_id:
                return False
            del rows[app_id]
            self._write(f, rows)
        return True

    def list_for(self, user_id: str) -> list[Application]:
        return [
            Application.from_dict(row)
            for row in self._read().values()
            if row.get("userId") == user_id
        ]
