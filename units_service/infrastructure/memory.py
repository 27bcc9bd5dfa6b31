import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from ..application.interfaces import IUnitRepository, UnitMutator
from ..domain.entities import Unit, UnitCreateSpec, UserRef
from ..domain.errors import NotFoundError


class InMemoryUnitRepository(IUnitRepository):
    """Реестр в памяти процесса для тестов и встраивания движка без БД.

    HTTP-приложение работает через ``SqlUnitRepository``. Запись в юнит идёт
    под его блокировкой, читатели берут снимок словаря без блокировок.
    """

    def __init__(
        self,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._units: dict[str, Unit] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def create(self, spec: UnitCreateSpec, creator: UserRef) -> Unit:
        unit = Unit.new(self._id_factory(), spec, creator, self._clock())
        with self._registry_lock:
            self._locks[unit.id] = threading.Lock()
            self._units[unit.id] = unit
        return unit

    def get(self, unit_id: str) -> Unit | None:
        return self._units.get(unit_id)

    def list_all(self) -> list[Unit]:
        units = list(self._units.values())
        return sorted(units, key=lambda u: (u.created_at, u.id))

    def update(self, unit_id: str, mutator: UnitMutator) -> Unit:
        lock = self._locks.get(unit_id)
        if lock is None:
            raise NotFoundError("Unit not found")
        with lock:
            current = self._units[unit_id]
            changed = replace(mutator(current), version=current.version + 1)
            self._units[unit_id] = changed
        return changed
