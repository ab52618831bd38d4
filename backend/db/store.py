"""Journey step storage behind one interface.

``DatabaseJourneyStepStore`` is the deployed variant: every call opens its
own unit of work through ``session_scope`` (``db.database.get_db`` by
default). ``InMemoryJourneyStepStore`` keeps the canonical steps in process
memory and does not enforce ``step_order`` uniqueness.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from sqlalchemy.exc import IntegrityError

from config import Settings
from db import repository
from db.database import get_db, init_db, ping_db
from db.models import JourneyStepModel, utcnow
from db.seed import CANONICAL_STEPS, seed_if_empty
from errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class JourneyStepStore(ABC):
    backend_name: str = ""

    @abstractmethod
    async def list(self) -> list[JourneyStepModel]:
        """All steps, ascending by step_order."""

    @abstractmethod
    async def create(self, columns: dict) -> JourneyStepModel: ...

    @abstractmethod
    async def update(self, step_id: int, columns: dict) -> JourneyStepModel: ...

    @abstractmethod
    async def delete(self, step_id: int) -> None: ...

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def ping(self) -> None:
        """Raise if the backing store is unreachable."""

    @abstractmethod
    async def bootstrap(self) -> int:
        """Prepare the store and seed it when empty. Returns rows inserted."""


class DatabaseJourneyStepStore(JourneyStepStore):
    backend_name = "database"

    def __init__(self, session_scope=get_db, init_schema=init_db, ping=ping_db):
        self.session_scope = session_scope
        self.init_schema = init_schema
        self._ping = ping

    async def list(self) -> list[JourneyStepModel]:
        async with self.session_scope() as db:
            return await repository.list_journey_steps(db)

    async def create(self, columns: dict) -> JourneyStepModel:
        try:
            async with self.session_scope() as db:
                return await repository.create_journey_step(db, columns)
        except IntegrityError as e:
            raise ConflictError(
                f"step_order {columns['step_order']} is already in use"
            ) from e

    async def update(self, step_id: int, columns: dict) -> JourneyStepModel:
        try:
            async with self.session_scope() as db:
                step = await repository.update_journey_step(db, step_id, columns)
                if step is None:
                    raise NotFoundError("Journey step not found")
                return step
        except IntegrityError as e:
            raise ConflictError(
                f"step_order {columns['step_order']} is already in use"
            ) from e

    async def delete(self, step_id: int) -> None:
        async with self.session_scope() as db:
            if not await repository.delete_journey_step(db, step_id):
                raise NotFoundError("Journey step not found")

    async def count(self) -> int:
        async with self.session_scope() as db:
            return await repository.count_journey_steps(db)

    async def ping(self) -> None:
        await self._ping()

    async def bootstrap(self) -> int:
        await self.init_schema()
        async with self.session_scope() as db:
            inserted = await seed_if_empty(db)
        if inserted:
            logger.info("Seeded %d journey steps", inserted)
        else:
            logger.info("journey_steps already populated; seed skipped")
        return inserted


class InMemoryJourneyStepStore(JourneyStepStore):
    backend_name = "in-memory"

    def __init__(self, rows: list[dict] | None = None):
        self._steps: list[JourneyStepModel] = []
        self._next_id = 1
        self._lock = asyncio.Lock()
        for row in CANONICAL_STEPS if rows is None else rows:
            self._insert(row)

    def _insert(self, columns: dict) -> JourneyStepModel:
        now = utcnow()
        step = JourneyStepModel(
            id=self._next_id,
            created_at=now,
            updated_at=now,
            **{k: columns[k] for k in repository.STEP_COLUMNS},
        )
        self._next_id += 1
        self._steps.append(step)
        return step

    def _find(self, step_id: int) -> JourneyStepModel:
        for step in self._steps:
            if step.id == step_id:
                return step
        raise NotFoundError("Journey step not found")

    async def list(self) -> list[JourneyStepModel]:
        async with self._lock:
            return sorted(self._steps, key=lambda s: (s.step_order, s.id))

    async def create(self, columns: dict) -> JourneyStepModel:
        async with self._lock:
            return self._insert(columns)

    async def update(self, step_id: int, columns: dict) -> JourneyStepModel:
        async with self._lock:
            step = self._find(step_id)
            for key in repository.STEP_COLUMNS:
                setattr(step, key, columns[key])
            step.updated_at = utcnow()
            return step

    async def delete(self, step_id: int) -> None:
        async with self._lock:
            self._steps.remove(self._find(step_id))

    async def count(self) -> int:
        return len(self._steps)

    async def ping(self) -> None:
        return None

    async def bootstrap(self) -> int:
        return 0


def build_store(settings: Settings) -> JourneyStepStore:
    if settings.JOURNEY_STORE == "memory":
        return InMemoryJourneyStepStore()
    if settings.JOURNEY_STORE != "database":
        raise ValueError(f"Unknown JOURNEY_STORE: {settings.JOURNEY_STORE!r}")
    return DatabaseJourneyStepStore()
