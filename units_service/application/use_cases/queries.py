from ...domain.entities import Unit, UserRef
from ...domain.policies import is_available_for, is_member, is_restricted_for, matches_query
from ..dto import AvailableUnit
from ..interfaces import IUnitRepository


class GetUserUnits:
    def __init__(self, repo: IUnitRepository):
        self.repo = repo

    def execute(self, user: UserRef) -> list[Unit]:
        return [u for u in self.repo.list_all() if is_member(u, user)]


class GetAvailableUnits:
    def __init__(self, repo: IUnitRepository):
        self.repo = repo

    def execute(self, user: UserRef, query: str | None = None) -> list[AvailableUnit]:
        return [
            AvailableUnit(unit=u, is_restricted_for_display=is_restricted_for(u, user))
            for u in self.repo.list_all()
            if is_available_for(u, user) and matches_query(u, query)
        ]
