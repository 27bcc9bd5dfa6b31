from typing import Callable

import structlog

from ..domain.entities import UnitChanges, UnitCreateSpec, UserRef
from ..domain.errors import UnitsError
from ..infrastructure.metrics import enrollment_operations_total
from .dto import AvailableUnit, OperationResult
from .interfaces import IUnitRepository
from .use_cases.create_unit import CreateUnit
from .use_cases.enrollment import JoinUnit, LeaveUnit
from .use_cases.manage_unit import GetUnitDetails, InviteLecturer, UpdateUnit
from .use_cases.queries import GetAvailableUnits, GetUserUnits

logger = structlog.get_logger(__name__)


class EnrollmentEngine:
    """Точка входа: все операции с юнитами от имени одного пользователя.

    Отказы предметной области возвращаются как неуспешный ``OperationResult``
    с сообщением и кодом. Остальные исключения пробрасываются.
    """

    def __init__(self, repo: IUnitRepository):
        self.repo = repo

    def _run(self, operation: str, user: UserRef, unit_id: str | None, action: Callable) -> OperationResult:
        try:
            unit = action()
        except UnitsError as e:
            enrollment_operations_total.labels(operation=operation, outcome=e.code).inc()
            logger.info(
                "unit_operation_rejected",
                operation=operation,
                unit_id=unit_id,
                user_id=user.id,
                role=user.role,
                error_code=e.code,
            )
            return OperationResult.fail(e)
        enrollment_operations_total.labels(operation=operation, outcome="success").inc()
        logger.info(
            "unit_operation_succeeded",
            operation=operation,
            unit_id=unit.id,
            user_id=user.id,
            role=user.role,
        )
        return OperationResult.ok(unit)

    def create_unit(self, spec: UnitCreateSpec, user: UserRef) -> OperationResult:
        return self._run("create", user, None, lambda: CreateUnit(self.repo).execute(spec, user))

    def join_unit(self, unit_id: str, user: UserRef) -> OperationResult:
        return self._run("join", user, unit_id, lambda: JoinUnit(self.repo).execute(unit_id, user))

    def leave_unit(self, unit_id: str, user: UserRef) -> OperationResult:
        return self._run("leave", user, unit_id, lambda: LeaveUnit(self.repo).execute(unit_id, user))

    def update_unit(self, unit_id: str, changes: UnitChanges, user: UserRef) -> OperationResult:
        return self._run("update", user, unit_id, lambda: UpdateUnit(self.repo).execute(unit_id, changes, user))

    def invite_lecturer(self, unit_id: str, email: str, user: UserRef) -> OperationResult:
        return self._run("invite", user, unit_id, lambda: InviteLecturer(self.repo).execute(unit_id, email, user))

    def get_unit(self, unit_id: str, user: UserRef) -> OperationResult:
        return self._run("details", user, unit_id, lambda: GetUnitDetails(self.repo).execute(unit_id, user))

    # Чтение: без блокировок, каждый раз заново из репозитория

    def get_user_units(self, user: UserRef):
        return GetUserUnits(self.repo).execute(user)

    def get_available_units(self, user: UserRef, query: str | None = None) -> list[AvailableUnit]:
        return GetAvailableUnits(self.repo).execute(user, query)
