"""Вступление и выход: решения по одному юниту.

Каждое решение выполняется внутри ``IUnitRepository.update``, поэтому проверки
видят то же состояние, в которое идёт запись. Два лектора на пустой слот или
двойное нажатие "join" не могут пройти оба.
"""
from ...domain.entities import Unit, UserRef
from ...domain.errors import (
    AccessRestrictedError,
    AlreadyAssignedError,
    InvalidRoleError,
    SlotOccupiedError,
)
from ...domain.policies import matches_restriction
from ..interfaces import IUnitRepository


def admit(unit: Unit, user: UserRef) -> Unit:
    """Возвращает юнит с записанным пользователем или бросает причину отказа.

    Для студента ограничение по зачётке проверяется раньше повторного вступления.
    Лекторы: кто первый занял слот, тот и лектор.
    """
    if user.is_student:
        if not matches_restriction(unit.restricted_to, user.admission_number):
            raise AccessRestrictedError(unit.restricted_to, user.admission_number)
        return unit.with_student(user.id)
    if user.is_lecturer:
        if unit.lecturer_id == user.id:
            raise AlreadyAssignedError("You're already the lecturer for this unit")
        if unit.has_lecturer:
            raise SlotOccupiedError("This unit already has a lecturer")
        return unit.with_lecturer(user.id)
    raise InvalidRoleError("Invalid user role")


def release(unit: Unit, user: UserRef) -> Unit:
    # снять лектора с юнита нельзя: такого сценария нет
    if not user.is_student:
        raise InvalidRoleError("Only students can leave units")
    return unit.without_student(user.id)


class JoinUnit:
    def __init__(self, repo: IUnitRepository):
        self.repo = repo

    def execute(self, unit_id: str, user: UserRef) -> Unit:
        return self.repo.update(unit_id, lambda unit: admit(unit, user))


class LeaveUnit:
    def __init__(self, repo: IUnitRepository):
        self.repo = repo

    def execute(self, unit_id: str, user: UserRef) -> Unit:
        return self.repo.update(unit_id, lambda unit: release(unit, user))
