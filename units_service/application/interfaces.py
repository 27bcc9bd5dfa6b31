from typing import Callable

from ..domain.entities import Unit, UnitCreateSpec, UserRef

UnitMutator = Callable[[Unit], Unit]


class IUnitRepository:
    """Реестр юнитов: хранение и атомарное изменение одного юнита."""

    def create(self, spec: UnitCreateSpec, creator: UserRef) -> Unit: ...

    def get(self, unit_id: str) -> Unit | None: ...

    def list_all(self) -> list[Unit]: ...

    def update(self, unit_id: str, mutator: UnitMutator) -> Unit:
        """Применяет ``mutator`` к текущему юниту как одну проверку с записью.

        Неизвестный id даёт NotFoundError. Ошибка мутатора пробрасывается, юнит не меняется.
        """
        ...
