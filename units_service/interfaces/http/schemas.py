from datetime import datetime
from pydantic import BaseModel, EmailStr

class UnitCreate(BaseModel):
    code: str
    name: str
    description: str
    university: str
    time: str
    date: str
    venue: str | None = None
    restricted_to: list[str] | None = None
    invited_lecturers: list[EmailStr] | None = None

class UnitUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    time: str | None = None
    date: str | None = None
    venue: str | None = None
    restricted_to: list[str] | None = None

class InviteReq(BaseModel):
    email: EmailStr

class UnitOut(BaseModel):
    id: str
    code: str
    name: str
    description: str
    university: str
    time: str
    date: str
    venue: str | None = None
    lecturer_id: str
    created_by: str
    created_at: datetime
    restricted_to: list[str]
    students: list[str]
    invited_lecturers: list[str]
    class Config: from_attributes = True

class AvailableUnitOut(UnitOut):
    is_restricted_for_display: bool = False
