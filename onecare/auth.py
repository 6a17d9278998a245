"""
Bearer token handling.

Credentials are issued by the identity service; this module only verifies the signed
token and turns its claims into values the routers inject.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt
from pydantic import BaseModel

from .config import JWT_ALGORITHM, SECRET_KEY
from .domain.booking.schemas import PatientSession

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

STAFF_ROLES = {"admin", "clinic", "doctor", "receptionist"}


class CurrentUser(BaseModel):
    user_id: str
    role: str
    clinic_id: Optional[int] = None
    patient_id: Optional[int] = None


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Claims to encode in the token
        expires_delta: Token expiration time (default 60 minutes)
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> CurrentUser:
    payload = verify_jwt_token(credentials.credentials)
    if not payload or not payload.get("sub") or not payload.get("role"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return CurrentUser(
        user_id=str(payload["sub"]),
        role=payload["role"],
        clinic_id=payload.get("clinic_id"),
        patient_id=payload.get("patient_id"),
    )


def ensure_clinic_access(user: CurrentUser, clinic_id: int) -> None:
    """Staff may only act inside their own clinic; admins act everywhere"""
    if user.role not in STAFF_ROLES:
        raise HTTPException(status_code=403, detail="Staff access required")
    if user.role != "admin" and user.clinic_id != clinic_id:
        logger.warning(f"⚠️ User {user.user_id} denied access to clinic {clinic_id}")
        raise HTTPException(status_code=403, detail="Not allowed for this clinic")


async def get_patient_session(user: CurrentUser = Depends(get_current_user)) -> PatientSession:
    """The authenticated patient, injected into booking as the current session"""
    if user.role != "patient" or user.patient_id is None:
        raise HTTPException(status_code=403, detail="Please use patient credentials to book appointments")
    return PatientSession(patient_id=user.patient_id, clinic_id=user.clinic_id, user_id=user.user_id)


async def get_optional_patient_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
) -> Optional[PatientSession]:
    """Patient session when a valid patient token is sent; anonymous visitors get None"""
    if credentials is None:
        return None
    payload = verify_jwt_token(credentials.credentials)
    if not payload or payload.get("role") != "patient" or payload.get("patient_id") is None:
        return None
    return PatientSession(
        patient_id=payload["patient_id"], clinic_id=payload.get("clinic_id"), user_id=str(payload.get("sub", ""))
    )
