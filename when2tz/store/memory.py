import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from when2tz.models.schedules import Schedule
from when2tz.store.base import ScheduleStore, StoreError

logger = logging.getLogger("when2tz.store")


class MemoryStore(ScheduleStore):
    """Process-local store. Nothing survives a restart."""

    backend = "memory"

    def __init__(self) -> None:
        self._schedules: dict[str, Schedule] = {}

    async def get(self, schedule_id: str) -> Schedule | None:
        return self._schedules.get(schedule_id)

    async def put(self, schedule: Schedule) -> None:
        self._schedules[schedule.id] = schedule

    async def list_ids(self) -> list[str]:
        return list(self._schedules)


class JsonFileStore(MemoryStore):
    """Memory store mirrored to one JSON file, rewritten whole on every put.

    Layout: ``{"schedules": {id: schedule}}``. The file is replaced
    atomically so a crash mid-write leaves the previous version intact.
    Puts are serialized and the file I/O runs in a worker thread; a schedule
    becomes visible to readers only after its write has landed.
    """

    backend = "file"

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__()
        self.path = Path(path)
        self._write_lock = asyncio.Lock()

    async def init(self) -> None:
        self._schedules = self._load()
        logger.info("Loaded %d schedules from %s", len(self._schedules), self.path)

    async def ping(self) -> bool:
        return os.access(self.path.parent, os.W_OK)

    async def put(self, schedule: Schedule) -> None:
        async with self._write_lock:
            snapshot = dict(self._schedules)
            snapshot[schedule.id] = schedule
            payload = json.dumps(self._serialize(snapshot), indent=2)
            await asyncio.to_thread(self._write, payload)
            self._schedules = snapshot

    def _load(self) -> dict[str, Schedule]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read %s, starting empty: %s", self.path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Unexpected layout in %s, starting empty", self.path)
            return {}
        schedules: dict[str, Schedule] = {}
        for schedule_id, data in (raw.get("schedules") or {}).items():
            try:
                schedules[schedule_id] = Schedule.model_validate(data)
            except ValidationError as e:
                logger.warning("Skipping unreadable schedule %s: %s", schedule_id, e)
        return schedules

    @staticmethod
    def _serialize(schedules: dict[str, Schedule]) -> dict[str, Any]:
        return {
            "schedules": {
                schedule_id: schedule.model_dump(mode="json", by_alias=True)
                for schedule_id, schedule in schedules.items()
            }
        }

    def _write(self, payload: str) -> None:
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to write %s: %s", self.path, e)
            raise StoreError(f"failed to write {self.path}: {e}") from e
