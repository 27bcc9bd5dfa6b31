from ...domain.entities import Unit, UnitChanges, UserRef
from ...domain.errors import AccessDeniedError, NotFoundError, ValidationError
from ...domain.policies import is_member
from ..interfaces import IUnitRepository


class GetUnitDetails:
    def __init__(self, repo: IUnitRepository):
        self.repo = repo

    def execute(self, unit_id: str, user: UserRef) -> Unit:
        unit = self.repo.get(unit_id)
        if unit is None:
            raise NotFoundError("Unit not found")
        if not is_member(unit, user):
            raise AccessDeniedError("Access denied to this unit")
        return unit


class UpdateUnit:
    """Лектор юнита меняет расписание и описание.

    Новый ``restricted_to`` действует только на будущие вступления.
    """

    def __init__(self, repo: IUnitRepository):
        self.repo = repo

    def execute(self, unit_id: str, changes: UnitChanges, user: UserRef) -> Unit:
        def mutate(unit: Unit) -> Unit:
            if not user.is_lecturer or unit.lecturer_id != user.id:
                raise AccessDeniedError("Only the unit's lecturer can update it")
            return unit.apply(changes)

        return self.repo.update(unit_id, mutate)


class InviteLecturer:
    def __init__(self, repo: IUnitRepository):
        self.repo = repo

    def execute(self, unit_id: str, email: str, user: UserRef) -> Unit:
        if not (email or "").strip():
            raise ValidationError("Missing required fields: email", ["email"])

        def mutate(unit: Unit) -> Unit:
            if user.id not in (unit.created_by, unit.lecturer_id):
                raise AccessDeniedError("Only the unit's creator or lecturer can invite lecturers")
            return unit.with_invitation(email)

        return self.repo.update(unit_id, mutate)
