from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from ...config import settings
from ...domain.entities import UserRef

bearer = HTTPBearer()

def get_claims(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    try:
        payload = jwt.decode(creds.credentials, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

def get_current_user(claims: dict = Depends(get_claims)) -> UserRef:
    # токен выпускает auth: sub = id пользователя, плюс роль и номер зачётки
    sub = claims.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return UserRef(
        id=str(sub),
        role=claims.get("role", "student"),
        admission_number=claims.get("admission_number"),
        email=claims.get("email"),
        department=claims.get("department"),
    )
