# discussify/utils/auth_utils.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from bson import ObjectId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from ..config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_DAYS
from ..models import UserModel
from ..repositories import UserRepository
from .deps import get_user_repository

# Bearer scheme for typical HTTP routes
bearer_scheme = HTTPBearer(auto_error=True)
# Optional bearer (won't auto-raise) for endpoints where auth is optional
optional_bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    if not SECRET_KEY:
        raise RuntimeError("JWT secret not configured.")
    expire = datetime.utcnow() + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    return jwt.encode({"user_id": str(user_id), "exp": expire}, SECRET_KEY, algorithm=ALGORITHM)


def _decode_user_id(token: str) -> str:
    if not SECRET_KEY:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="JWT secret not configured.")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token.")
    user_id = payload.get("user_id")
    if not user_id or not ObjectId.is_valid(str(user_id)):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload.")
    return str(user_id)


async def _load_user_or_401(user_id: str, users: UserRepository) -> UserModel:
    user = await users.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found.")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account deactivated.")
    return user


# ------------------------------------------------------------------
# Public dependencies
# ------------------------------------------------------------------
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    users: UserRepository = Depends(get_user_repository),
) -> UserModel:
    """
    Validates the Bearer JWT, loads the user and rejects deactivated accounts.
    """
    user_id = _decode_user_id(credentials.credentials)
    return await _load_user_or_401(user_id, users)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme),
    users: UserRepository = Depends(get_user_repository),
) -> Optional[UserModel]:
    """
    Optional auth: returns the user if a valid Bearer token is present; otherwise None.
    Never raises for a missing/invalid token.
    """
    if not credentials:
        return None
    try:
        user_id = _decode_user_id(credentials.credentials)
        return await _load_user_or_401(user_id, users)
    except HTTPException:
        return None


async def get_current_admin_user(
    user: UserModel = Depends(get_current_user),
) -> UserModel:
    """
    Platform admin guard (role == 'admin').
    """
    if user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin only.")
    return user
