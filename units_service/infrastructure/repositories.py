import random
import time
import uuid
from dataclasses import replace
from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, selectinload

from .metrics import unit_update_conflicts_total
from .models import UnitORM, UnitStudentORM
from ..application.interfaces import IUnitRepository, UnitMutator
from ..config import settings
from ..domain.entities import Unit, UnitCreateSpec, UserRef
from ..domain.errors import ConcurrencyConflictError, NotFoundError

logger = structlog.get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite отдаёт время без таймзоны
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def to_domain(u: UnitORM) -> Unit:
    return Unit(
        id=u.id,
        code=u.code,
        name=u.name,
        description=u.description,
        university=u.university,
        time=u.time,
        date=u.date,
        venue=u.venue,
        lecturer_id=u.lecturer_id or "",
        created_by=u.created_by,
        created_at=_as_utc(u.created_at),
        restricted_to=tuple(u.restricted_to or ()),
        students=tuple(s.student_id for s in u.students),
        invited_lecturers=tuple(u.invited_lecturers or ()),
        version=u.version,
    )


class SqlUnitRepository(IUnitRepository):
    """Юниты в SQL. Изменения одного юнита идут по очереди под блокировкой строки.

    Первая запись транзакции увеличивает ``units.version`` и этим блокирует
    строку юнита (в SQLite всю базу) до commit или rollback. Остальные
    писатели ждут, проверки мутатора видят уже зафиксированное состояние.
    """

    def __init__(self, db: Session, max_retries: int | None = None):
        self.db = db
        self.max_retries = max_retries if max_retries is not None else settings.UPDATE_MAX_RETRIES

    def _load(self, unit_id: str) -> UnitORM | None:
        stmt = (select(UnitORM)
                .where(UnitORM.id == unit_id)
                .options(selectinload(UnitORM.students))
                .execution_options(populate_existing=True))
        return self.db.execute(stmt).scalar_one_or_none()

    def _lock(self, unit_id: str) -> bool:
        result = self.db.execute(
            update(UnitORM)
            .where(UnitORM.id == unit_id)
            .values(version=UnitORM.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def get(self, unit_id: str) -> Unit | None:
        row = self._load(unit_id)
        return to_domain(row) if row else None

    def list_all(self) -> list[Unit]:
        stmt = (select(UnitORM)
                .options(selectinload(UnitORM.students))
                .order_by(UnitORM.created_at, UnitORM.id)
                .execution_options(populate_existing=True))
        return [to_domain(row) for row in self.db.execute(stmt).scalars().all()]

    def create(self, spec: UnitCreateSpec, creator: UserRef) -> Unit:
        unit = Unit.new(str(uuid.uuid4()), spec, creator, datetime.now(timezone.utc))
        row = UnitORM(
            id=unit.id,
            code=unit.code,
            name=unit.name,
            description=unit.description,
            university=unit.university,
            time=unit.time,
            date=unit.date,
            venue=unit.venue,
            lecturer_id=unit.lecturer_id or None,
            created_by=unit.created_by,
            created_at=unit.created_at,
            restricted_to=list(unit.restricted_to) or None,
            invited_lecturers=list(unit.invited_lecturers) or None,
            version=0,
        )
        row.students = [UnitStudentORM(student_id=s) for s in unit.students]
        self.db.add(row); self.db.commit()
        return unit

    def update(self, unit_id: str, mutator: UnitMutator) -> Unit:
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                locked = self._lock(unit_id)
            except OperationalError:
                # блокировку держит другая транзакция дольше таймаута драйвера
                self.db.rollback()
                unit_update_conflicts_total.inc()
                logger.warning("unit_update_lock_timeout", unit_id=unit_id, attempt=attempt)
                if attempt < attempts:
                    time.sleep(random.uniform(0, settings.UPDATE_RETRY_BACKOFF * attempt))
                continue
            try:
                if not locked:
                    raise NotFoundError("Unit not found")
                current = to_domain(self._load(unit_id))
                changed = mutator(current)
                self.db.execute(
                    update(UnitORM)
                    .where(UnitORM.id == unit_id)
                    .values(
                        name=changed.name,
                        description=changed.description,
                        time=changed.time,
                        date=changed.date,
                        venue=changed.venue,
                        lecturer_id=changed.lecturer_id or None,
                        restricted_to=list(changed.restricted_to) or None,
                        invited_lecturers=list(changed.invited_lecturers) or None,
                    )
                    .execution_options(synchronize_session=False)
                )
                self._sync_students(unit_id, current.students, changed.students)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            return replace(changed, version=current.version)
        raise ConcurrencyConflictError(unit_id, attempts)

    def _sync_students(self, unit_id: str, before: tuple[str, ...], after: tuple[str, ...]) -> None:
        removed = [s for s in before if s not in after]
        added = [s for s in after if s not in before]
        if removed:
            self.db.execute(
                delete(UnitStudentORM)
                .where(UnitStudentORM.unit_id == unit_id, UnitStudentORM.student_id.in_(removed))
                .execution_options(synchronize_session=False)
            )
        for student_id in added:
            self.db.add(UnitStudentORM(unit_id=unit_id, student_id=student_id))
