import pytest
import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
SERVICE_ROOT = os.path.dirname(CURRENT_DIR)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

# Настройки читаются при импорте units_service.config, поэтому до импорта приложения
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_units.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from units_service.domain.entities import UnitCreateSpec, UserRef


@pytest.fixture
def student():
    return UserRef(id="3", role="student", admission_number="CS2023001")


@pytest.fixture
def other_student():
    return UserRef(id="4", role="student", admission_number="CS2023002")


@pytest.fixture
def lecturer():
    return UserRef(id="1", role="lecturer", email="lecturer@uni.ac.ke", department="Computing")


@pytest.fixture
def other_lecturer():
    return UserRef(id="2", role="lecturer", email="second@uni.ac.ke", department="Computing")


@pytest.fixture
def cs101_spec():
    """Спецификация юнита CS101 с ограничением по префиксу CS2023"""
    return UnitCreateSpec(
        code="CS101",
        name="Introduction to Programming",
        description="Basics of programming in Python",
        university="University of Nairobi",
        time="10:00 - 12:00",
        date="Monday",
        venue="Lab 3",
        restricted_to=["CS2023"],
    )


@pytest.fixture
def open_spec():
    """Юнит без ограничений"""
    return UnitCreateSpec(
        code="MTH201",
        name="Linear Algebra",
        description="Vectors and matrices",
        university="University of Nairobi",
        time="14:00 - 16:00",
        date="Wednesday",
    )
