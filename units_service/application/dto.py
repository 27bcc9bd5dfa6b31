from dataclasses import dataclass, field

from ..domain.entities import Unit
from ..domain.errors import UnitsError


@dataclass
class OperationResult:
    success: bool
    unit: Unit | None = None
    error: str | None = None
    error_code: str | None = None
    details: dict = field(default_factory=dict)

    @classmethod
    def ok(cls, unit: Unit) -> "OperationResult":
        return cls(success=True, unit=unit)

    @classmethod
    def fail(cls, exc: UnitsError) -> "OperationResult":
        return cls(success=False, error=exc.message, error_code=exc.code, details=exc.details)


@dataclass
class AvailableUnit:
    unit: Unit
    is_restricted_for_display: bool = False
