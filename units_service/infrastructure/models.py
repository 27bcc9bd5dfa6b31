# units_service/infrastructure/models.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, TIMESTAMP, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UnitORM(Base):
    __tablename__ = "units"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    university: Mapped[str] = mapped_column(String(255), nullable=False)
    time: Mapped[str] = mapped_column(String(64), nullable=False)
    date: Mapped[str] = mapped_column(String(64), nullable=False)
    venue: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lecturer_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)  # NULL = слот свободен
    created_by: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)
    restricted_to: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    invited_lecturers: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    # ревизия, её увеличение блокирует строку юнита
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    students: Mapped[list["UnitStudentORM"]] = relationship(
        "UnitStudentORM",
        back_populates="unit",
        order_by="UnitStudentORM.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"UnitORM(id={self.id!r}, code={self.code!r}, version={self.version!r})"


class UnitStudentORM(Base):
    __tablename__ = "unit_students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    unit_id: Mapped[str] = mapped_column(
        ForeignKey("units.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    joined_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)

    unit: Mapped["UnitORM"] = relationship("UnitORM", back_populates="students")

    __table_args__ = (UniqueConstraint("unit_id", "student_id", name="uq_unit_student"),)

    def __repr__(self) -> str:
        return f"UnitStudentORM(unit_id={self.unit_id!r}, student_id={self.student_id!r})"


__all__ = [
    "Base",
    "UnitORM",
    "UnitStudentORM",
]
