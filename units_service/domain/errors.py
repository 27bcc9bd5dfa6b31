"""Ошибки предметной области: ожидаемые отказы отдельных операций с юнитами."""


class UnitsError(Exception):
    """Базовый класс ожидаемых отказов операций с юнитами."""

    code = "units_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def details(self) -> dict:
        return {}


class ValidationError(UnitsError):
    """Не заполнены обязательные поля юнита."""

    code = "validation"

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = list(fields or [])

    @property
    def details(self) -> dict:
        return {"fields": self.fields}


class NotFoundError(UnitsError):
    """Юнит с таким id не найден."""

    code = "not_found"


class AccessRestrictedError(UnitsError):
    """Номер зачётки студента не подходит ни под один префикс юнита."""

    code = "access_restricted"

    def __init__(self, required_prefixes: tuple[str, ...], admission_number: str | None):
        self.required_prefixes = tuple(required_prefixes)
        self.admission_number = admission_number
        super().__init__(
            f"Your admission number ({admission_number or 'none'}) doesn't have access "
            f"to this unit. Required prefixes: {', '.join(self.required_prefixes)}"
        )

    @property
    def details(self) -> dict:
        return {
            "required_prefixes": list(self.required_prefixes),
            "admission_number": self.admission_number,
        }


class AlreadyEnrolledError(UnitsError):
    code = "already_enrolled"


class AlreadyAssignedError(UnitsError):
    code = "already_assigned"


class SlotOccupiedError(UnitsError):
    """Слот лектора уже занят другим лектором."""

    code = "slot_occupied"


class NotEnrolledError(UnitsError):
    code = "not_enrolled"


class InvalidRoleError(UnitsError):
    code = "invalid_role"


class AccessDeniedError(UnitsError):
    """Пользователь не может смотреть или менять этот юнит."""

    code = "access_denied"


class ConcurrencyConflictError(Exception):
    """Не дождались блокировки юнита за все попытки. Это не отказ предметной области."""

    def __init__(self, unit_id: str, attempts: int):
        super().__init__(f"unit {unit_id} stayed locked after {attempts} attempts")
        self.unit_id = unit_id
        self.attempts = attempts
