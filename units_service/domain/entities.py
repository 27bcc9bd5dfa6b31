from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from .errors import AlreadyAssignedError, AlreadyEnrolledError, NotEnrolledError, ValidationError

STUDENT = "student"
LECTURER = "lecturer"
ROLES = (STUDENT, LECTURER)

REQUIRED_FIELDS = ("code", "name", "description", "university", "time", "date")


@dataclass(frozen=True)
class UserRef:
    id: str
    role: str
    admission_number: str | None = None
    email: str | None = None
    department: str | None = None

    @property
    def is_student(self) -> bool:
        return self.role == STUDENT

    @property
    def is_lecturer(self) -> bool:
        return self.role == LECTURER


def _clean_list(values, lower: bool = False) -> tuple[str, ...]:
    # trim, выкидываем пустые и повторы, порядок сохраняем
    out: list[str] = []
    for value in values or ():
        value = (value or "").strip()
        if lower:
            value = value.lower()
        if value and value not in out:
            out.append(value)
    return tuple(out)


@dataclass(frozen=True)
class UnitCreateSpec:
    code: str
    name: str
    description: str
    university: str
    time: str
    date: str
    venue: str | None = None
    restricted_to: list[str] | None = None
    invited_lecturers: list[str] | None = None

    def validate(self) -> None:
        missing = [f for f in REQUIRED_FIELDS if not (getattr(self, f) or "").strip()]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing)


@dataclass(frozen=True)
class UnitChanges:
    """Частичное изменение полей юнита, ``None`` значит без изменений."""

    name: str | None = None
    description: str | None = None
    time: str | None = None
    date: str | None = None
    venue: str | None = None
    restricted_to: list[str] | None = None

    def validate(self) -> None:
        blank = [
            f for f in ("name", "description", "time", "date")
            if getattr(self, f) is not None and not getattr(self, f).strip()
        ]
        if blank:
            raise ValidationError(f"Fields cannot be empty: {', '.join(blank)}", blank)


@dataclass(frozen=True)
class Unit:
    id: str
    code: str
    name: str
    description: str
    university: str
    time: str
    date: str
    created_by: str
    created_at: datetime
    venue: str | None = None
    lecturer_id: str = ""
    restricted_to: tuple[str, ...] = ()
    students: tuple[str, ...] = ()
    invited_lecturers: tuple[str, ...] = ()
    version: int = field(default=0, compare=False)

    @classmethod
    def new(cls, unit_id: str, spec: UnitCreateSpec, creator: UserRef, created_at: datetime) -> "Unit":
        """Новый юнит: создатель занимает слот лектора или первое место в списке студентов."""
        spec.validate()
        return cls(
            id=unit_id,
            code=spec.code.strip(),
            name=spec.name.strip(),
            description=spec.description.strip(),
            university=spec.university.strip(),
            time=spec.time.strip(),
            date=spec.date.strip(),
            venue=(spec.venue or "").strip() or None,
            lecturer_id=creator.id if creator.is_lecturer else "",
            created_by=creator.id,
            created_at=created_at,
            restricted_to=_clean_list(spec.restricted_to),
            students=(creator.id,) if creator.is_student else (),
            invited_lecturers=_clean_list(spec.invited_lecturers, lower=True),
        )

    @property
    def has_lecturer(self) -> bool:
        return self.lecturer_id != ""

    @property
    def is_restricted(self) -> bool:
        return len(self.restricted_to) > 0

    def has_student(self, user_id: str) -> bool:
        return user_id in self.students

    def with_student(self, user_id: str) -> "Unit":
        if user_id in self.students:
            raise AlreadyEnrolledError("You're already enrolled in this unit")
        if user_id == self.lecturer_id:
            raise AlreadyAssignedError("You're already the lecturer for this unit")
        return replace(self, students=self.students + (user_id,))

    def without_student(self, user_id: str) -> "Unit":
        if user_id not in self.students:
            raise NotEnrolledError("Not enrolled in this unit")
        return replace(self, students=tuple(s for s in self.students if s != user_id))

    def with_lecturer(self, user_id: str) -> "Unit":
        return replace(self, lecturer_id=user_id)

    def with_invitation(self, email: str) -> "Unit":
        invited = _clean_list(self.invited_lecturers + (email,), lower=True)
        return replace(self, invited_lecturers=invited)

    def apply(self, changes: UnitChanges) -> "Unit":
        changes.validate()
        updated = {}
        for name in ("name", "description", "time", "date"):
            value = getattr(changes, name)
            if value is not None:
                updated[name] = value.strip()
        if changes.venue is not None:
            updated["venue"] = changes.venue.strip() or None
        if changes.restricted_to is not None:
            # уже записанных студентов не трогаем, ограничение действует только при вступлении
            updated["restricted_to"] = _clean_list(changes.restricted_to)
        return replace(self, **updated)
