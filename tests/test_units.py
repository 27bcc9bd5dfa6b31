import os
import sys
import pytest

CURRENT_DIR = os.path.dirname(__file__)
SERVICE_ROOT = os.path.dirname(CURRENT_DIR)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from units_service.config import settings
from units_service.infrastructure.db import Base, get_db

# Тестовая БД в памяти, одно соединение на все потоки TestClient
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

# Переопределяем engine в infrastructure.db и main.py для тестов
import units_service.infrastructure.db
import units_service.main
units_service.infrastructure.db.engine = test_engine
units_service.main.engine = test_engine
units_service.infrastructure.db.SessionLocal = TestingSessionLocal

# Импортируем app после переопределения engine
from units_service.main import app

def make_token(sub, role="student", **claims):
    payload = {"sub": sub, "role": role, **claims}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def auth(sub, role="student", **claims):
    return {"Authorization": f"Bearer {make_token(sub, role, **claims)}"}

STUDENT_3 = auth("3", admission_number="CS2023001")
STUDENT_4 = auth("4", admission_number="CS2023002")
STUDENT_ENG = auth("5", admission_number="ENG2023001")
LECTURER_1 = auth("1", "lecturer", email="lecturer@uni.ac.ke")
LECTURER_2 = auth("2", "lecturer", email="second@uni.ac.ke")

CS101 = {
    "code": "CS101",
    "name": "Introduction to Programming",
    "description": "Basics of programming",
    "university": "University of Nairobi",
    "time": "10:00 - 12:00",
    "date": "Monday",
    "venue": "Lab 3",
    "restricted_to": ["CS2023"],
}

@pytest.fixture(scope="function")
def client():
    app.dependency_overrides[get_db] = override_get_db
    # Создаем таблицы перед каждым тестом на тестовом engine
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield TestClient(app)
    # Очищаем после теста
    Base.metadata.drop_all(bind=test_engine)
    if get_db in app.dependency_overrides:
        del app.dependency_overrides[get_db]

@pytest.fixture
def cs101_id(client):
    response = client.post("/api/units", json=CS101, headers=STUDENT_3)
    assert response.status_code == 201
    return response.json()["id"]

def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/api/units/health").json() == {"status": "ok"}

def test_create_unit_unauthorized(client):
    """Тест создания юнита без авторизации"""
    response = client.post("/api/units", json=CS101)
    # HTTPBearer: 403 в старых версиях FastAPI, 401 в новых
    assert response.status_code in (401, 403)

def test_invalid_token(client):
    """Тест с токеном, подписанным чужим ключом"""
    token = jwt.encode({"sub": "3", "role": "student"}, "wrong-secret", algorithm="HS256")
    response = client.get("/api/units/mine", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401

def test_token_without_subject(client):
    token = jwt.encode({"role": "student"}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    response = client.get("/api/units/mine", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401

def test_create_unit_by_student(client):
    """Тест создания юнита студентом"""
    response = client.post("/api/units", json=CS101, headers=STUDENT_3)
    assert response.status_code == 201
    data = response.json()
    assert data["code"] == "CS101"
    assert data["created_by"] == "3"
    assert data["lecturer_id"] == ""
    assert data["students"] == ["3"]
    assert data["restricted_to"] == ["CS2023"]
    assert "id" in data

def test_create_unit_blank_fields(client):
    """Тест создания юнита с пустыми полями"""
    payload = {**CS101, "name": "   ", "date": ""}
    response = client.post("/api/units", json=payload, headers=STUDENT_3)
    assert response.status_code == 422
    assert "name" in response.json()["detail"]

def test_create_unit_missing_field(client):
    payload = {k: v for k, v in CS101.items() if k != "university"}
    response = client.post("/api/units", json=payload, headers=STUDENT_3)
    assert response.status_code == 422

def test_create_unit_invalid_invitation_email(client):
    payload = {**CS101, "invited_lecturers": ["not-an-email"]}
    response = client.post("/api/units", json=payload, headers=STUDENT_3)
    assert response.status_code == 422

def test_create_unit_unknown_role(client):
    response = client.post("/api/units", json=CS101, headers=auth("9", "admin"))
    assert response.status_code == 403

def test_lecturer_joins(client, cs101_id):
    """Тест назначения лектора на свободный юнит"""
    response = client.post(f"/api/units/{cs101_id}/join", headers=LECTURER_1)
    assert response.status_code == 200
    assert response.json()["lecturer_id"] == "1"

    response = client.post(f"/api/units/{cs101_id}/join", headers=LECTURER_2)
    assert response.status_code == 409
    assert response.json()["detail"] == "This unit already has a lecturer"

    response = client.post(f"/api/units/{cs101_id}/join", headers=LECTURER_1)
    assert response.status_code == 409

def test_student_join_and_duplicate(client, cs101_id):
    """Тест вступления студента и повторного вступления"""
    response = client.post(f"/api/units/{cs101_id}/join", headers=STUDENT_4)
    assert response.status_code == 200
    assert response.json()["students"] == ["3", "4"]

    response = client.post(f"/api/units/{cs101_id}/join", headers=STUDENT_4)
    assert response.status_code == 409
    assert response.json()["detail"] == "You're already enrolled in this unit"

def test_student_join_restricted(client, cs101_id):
    """Тест ограничения по номеру зачётки"""
    response = client.post(f"/api/units/{cs101_id}/join", headers=STUDENT_ENG)
    assert response.status_code == 403
    detail = response.json()["detail"]
    assert "ENG2023001" in detail
    assert "Required prefixes: CS2023" in detail

    response = client.post(f"/api/units/{cs101_id}/join", headers=auth("6"))
    assert response.status_code == 403

def test_join_not_found(client):
    response = client.post("/api/units/999/join", headers=STUDENT_4)
    assert response.status_code == 404

def test_leave_unit(client, cs101_id):
    """Тест выхода из юнита"""
    client.post(f"/api/units/{cs101_id}/join", headers=STUDENT_4)
    response = client.post(f"/api/units/{cs101_id}/leave", headers=STUDENT_4)
    assert response.status_code == 200
    assert response.json()["students"] == ["3"]

    response = client.post(f"/api/units/{cs101_id}/leave", headers=STUDENT_4)
    assert response.status_code == 409

    client.post(f"/api/units/{cs101_id}/join", headers=LECTURER_1)
    response = client.post(f"/api/units/{cs101_id}/leave", headers=LECTURER_1)
    assert response.status_code == 403

def test_my_units(client, cs101_id):
    """Тест списка 'мои юниты'"""
    assert [u["id"] for u in client.get("/api/units/mine", headers=STUDENT_3).json()] == [cs101_id]
    assert client.get("/api/units/mine", headers=STUDENT_4).json() == []

    client.post(f"/api/units/{cs101_id}/join", headers=LECTURER_1)
    assert [u["id"] for u in client.get("/api/units/mine", headers=LECTURER_1).json()] == [cs101_id]

def test_available_units(client, cs101_id):
    """Тест поиска юнитов с пометкой ограничения"""
    assert client.get("/api/units/available", headers=STUDENT_3).json() == []

    data = client.get("/api/units/available", headers=STUDENT_ENG).json()
    assert len(data) == 1
    assert data[0]["id"] == cs101_id
    assert data[0]["is_restricted_for_display"] is True

    data = client.get("/api/units/available", headers=STUDENT_4).json()
    assert data[0]["is_restricted_for_display"] is False

    assert client.get("/api/units/available?q=biology", headers=STUDENT_4).json() == []
    assert len(client.get("/api/units/available?q=cs10", headers=STUDENT_4).json()) == 1

def test_available_units_for_invited_lecturer(client, cs101_id):
    """Тест: приглашённый лектор видит юнит с занятым слотом"""
    client.post(f"/api/units/{cs101_id}/join", headers=LECTURER_2)
    assert client.get("/api/units/available", headers=LECTURER_1).json() == []

    response = client.post(f"/api/units/{cs101_id}/invitations",
                           json={"email": "lecturer@uni.ac.ke"}, headers=STUDENT_3)
    assert response.status_code == 200
    assert response.json()["invited_lecturers"] == ["lecturer@uni.ac.ke"]
    assert [u["id"] for u in client.get("/api/units/available", headers=LECTURER_1).json()] == [cs101_id]

def test_invite_forbidden(client, cs101_id):
    response = client.post(f"/api/units/{cs101_id}/invitations",
                           json={"email": "lecturer@uni.ac.ke"}, headers=STUDENT_4)
    assert response.status_code == 403

def test_unit_details_access(client, cs101_id):
    """Тест доступа к деталям юнита"""
    assert client.get(f"/api/units/{cs101_id}", headers=STUDENT_3).status_code == 200
    assert client.get(f"/api/units/{cs101_id}", headers=STUDENT_4).status_code == 403
    assert client.get("/api/units/999", headers=STUDENT_3).status_code == 404

def test_update_unit(client, cs101_id):
    """Тест изменения юнита лектором"""
    response = client.patch(f"/api/units/{cs101_id}", json={"name": "Programming I"}, headers=STUDENT_3)
    assert response.status_code == 403

    client.post(f"/api/units/{cs101_id}/join", headers=LECTURER_1)
    response = client.patch(f"/api/units/{cs101_id}",
                            json={"name": "Programming I", "venue": "Hall B"}, headers=LECTURER_1)
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Programming I"
    assert data["venue"] == "Hall B"
    assert data["description"] == CS101["description"]

    response = client.patch(f"/api/units/{cs101_id}", json={"time": " "}, headers=LECTURER_1)
    assert response.status_code == 422

def test_update_unit_clears_venue(client, cs101_id):
    """Тест: venue=null очищает аудиторию, без поля аудитория остаётся"""
    client.post(f"/api/units/{cs101_id}/join", headers=LECTURER_1)
    response = client.patch(f"/api/units/{cs101_id}", json={"name": "Programming I"}, headers=LECTURER_1)
    assert response.json()["venue"] == "Lab 3"

    response = client.patch(f"/api/units/{cs101_id}", json={"venue": None}, headers=LECTURER_1)
    assert response.status_code == 200
    assert response.json()["venue"] is None
    assert client.get(f"/api/units/{cs101_id}", headers=LECTURER_1).json()["venue"] is None

def test_metrics_endpoint(client):
    """Тест endpoint метрик"""
    client.get("/api/units/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]
    assert "http_requests_total" in response.text
