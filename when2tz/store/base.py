"""Schedule store interface."""

from abc import ABC, abstractmethod

from when2tz.models.schedules import Schedule


class StoreError(Exception):
    """A store could not read or durably write schedule data."""


class ScheduleStore(ABC):
    """Keyed storage for whole schedules, participants included.

    Lifecycle: ``init`` once on startup, ``put`` after every mutation,
    ``close`` on shutdown. ``put`` must not return until the write is
    durable for the backend and must raise ``StoreError`` otherwise.
    """

    backend: str = "base"

    async def init(self) -> None:
        return

    async def close(self) -> None:
        return

    async def ping(self) -> bool:
        return True

    @abstractmethod
    async def get(self, schedule_id: str) -> Schedule | None: ...

    @abstractmethod
    async def put(self, schedule: Schedule) -> None: ...

    @abstractmethod
    async def list_ids(self) -> list[str]: ...
