"""Правила доступа к юнитам: префиксы номера зачётки, видимость при поиске, членство.

Префикс проверяется обычным ``str.startswith`` с учётом регистра, без масок и регулярок.
"""
from .entities import Unit, UserRef


def matches_restriction(restricted_to, admission_number: str | None) -> bool:
    """True, если юнит открыт для этого номера зачётки."""
    if not restricted_to:
        return True
    if not admission_number:
        return False
    return any(admission_number.startswith(prefix) for prefix in restricted_to)


def is_restricted_for(unit: Unit, user: UserRef) -> bool:
    return user.is_student and not matches_restriction(unit.restricted_to, user.admission_number)


def is_member(unit: Unit, user: UserRef) -> bool:
    return unit.lecturer_id == user.id or unit.has_student(user.id) or unit.created_by == user.id


def is_available_for(unit: Unit, user: UserRef) -> bool:
    if user.is_student:
        return not unit.has_student(user.id) and unit.created_by != user.id
    if user.is_lecturer:
        if unit.lecturer_id == user.id:
            return False
        if not unit.has_lecturer:
            return True
        email = (user.email or "").strip().lower()
        return bool(email) and email in unit.invited_lecturers
    return False


def matches_query(unit: Unit, query: str | None) -> bool:
    if not query or not query.strip():
        return True
    q = query.strip().lower()
    return q in unit.code.lower() or q in unit.name.lower() or q in unit.university.lower()
