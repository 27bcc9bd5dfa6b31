from fastapi import APIRouter, Depends, Query, HTTPException, Request, status
from sqlalchemy.orm import Session
from ....application.dto import OperationResult
from ....application.engine import EnrollmentEngine
from ....domain.entities import UnitChanges, UnitCreateSpec, UserRef
from ....infrastructure.db import get_db
from ....infrastructure.repositories import SqlUnitRepository
from ..authz import get_current_user
from ..ratelimit import limiter, write_limit
from ..schemas import AvailableUnitOut, InviteReq, UnitCreate, UnitOut, UnitUpdate

router = APIRouter(prefix="/api/units", tags=["units"])

# код ошибки движка -> HTTP статус
ERROR_STATUS = {
    "validation": 422,
    "not_found": 404,
    "access_restricted": 403,
    "access_denied": 403,
    "invalid_role": 403,
    "already_enrolled": 409,
    "already_assigned": 409,
    "slot_occupied": 409,
    "not_enrolled": 409,
}

def get_engine(db: Session = Depends(get_db)) -> EnrollmentEngine:
    return EnrollmentEngine(SqlUnitRepository(db))

def unwrap(result: OperationResult):
    if not result.success:
        raise HTTPException(ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST), result.error)
    return result.unit

@router.get("/health")
def health(): return {"status":"ok"}

@router.get("/mine", response_model=list[UnitOut])
def my_units(user: UserRef = Depends(get_current_user),
             engine: EnrollmentEngine = Depends(get_engine)):
    return engine.get_user_units(user)

@router.get("/available", response_model=list[AvailableUnitOut])
def available_units(user: UserRef = Depends(get_current_user),
                    engine: EnrollmentEngine = Depends(get_engine),
                    q: str | None = Query(None, max_length=100)):
    items = engine.get_available_units(user, q)
    return [
        AvailableUnitOut(**UnitOut.model_validate(i.unit).model_dump(),
                         is_restricted_for_display=i.is_restricted_for_display)
        for i in items
    ]

@router.post("", response_model=UnitOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(write_limit)
def create_unit(request: Request, payload: UnitCreate,
                user: UserRef = Depends(get_current_user),
                engine: EnrollmentEngine = Depends(get_engine)):
    spec = UnitCreateSpec(**payload.model_dump())
    return unwrap(engine.create_unit(spec, user))

@router.get("/{unit_id}", response_model=UnitOut)
def unit_details(unit_id: str,
                 user: UserRef = Depends(get_current_user),
                 engine: EnrollmentEngine = Depends(get_engine)):
    return unwrap(engine.get_unit(unit_id, user))

@router.patch("/{unit_id}", response_model=UnitOut)
@limiter.limit(write_limit)
def update_unit(request: Request, unit_id: str, payload: UnitUpdate,
                user: UserRef = Depends(get_current_user),
                engine: EnrollmentEngine = Depends(get_engine)):
    data = payload.model_dump(exclude_unset=True)
    # явный null для venue очищает аудиторию, отсутствующее поле оставляет как есть
    if "venue" in data and data["venue"] is None:
        data["venue"] = ""
    changes = UnitChanges(**data)
    return unwrap(engine.update_unit(unit_id, changes, user))

@router.post("/{unit_id}/join", response_model=UnitOut)
@limiter.limit(write_limit)
def join_unit(request: Request, unit_id: str,
              user: UserRef = Depends(get_current_user),
              engine: EnrollmentEngine = Depends(get_engine)):
    return unwrap(engine.join_unit(unit_id, user))

@router.post("/{unit_id}/leave", response_model=UnitOut)
@limiter.limit(write_limit)
def leave_unit(request: Request, unit_id: str,
               user: UserRef = Depends(get_current_user),
               engine: EnrollmentEngine = Depends(get_engine)):
    return unwrap(engine.leave_unit(unit_id, user))

@router.post("/{unit_id}/invitations", response_model=UnitOut)
@limiter.limit(write_limit)
def invite_lecturer(request: Request, unit_id: str, payload: InviteReq,
                    user: UserRef = Depends(get_current_user),
                    engine: EnrollmentEngine = Depends(get_engine)):
    return unwrap(engine.invite_lecturer(unit_id, payload.email, user))
