from ...domain.entities import ROLES, Unit, UnitCreateSpec, UserRef
from ...domain.errors import InvalidRoleError
from ..interfaces import IUnitRepository


class CreateUnit:
    def __init__(self, repo: IUnitRepository):
        self.repo = repo

    def execute(self, spec: UnitCreateSpec, creator: UserRef) -> Unit:
        if creator.role not in ROLES:
            raise InvalidRoleError("Invalid user role")
        spec.validate()
        return self.repo.create(spec, creator)
