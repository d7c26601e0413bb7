from datetime import datetime, timedelta

from bson import ObjectId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from jobportal.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from jobportal.database import get_db
from jobportal.utils.errors import ForbiddenError

security = HTTPBearer()


def create_access_token(data: dict, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES):
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def token_for_user(user: dict) -> str:
    return create_access_token({"sub": str(user["_id"]), "role": user["role"]})


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Resolve the bearer token into the stored user document."""
    token = credentials.credentials

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None or not ObjectId.is_valid(user_id):
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    db = get_db()
    user = await db.users.find_one({"_id": ObjectId(user_id)})
    if user is None:
        raise credentials_exception

    if user.get("is_blocked"):
        raise ForbiddenError("Your account has been blocked by admin.")

    return user


def require_roles(*roles: str):
    """Dependency factory: only let the listed roles through."""

    async def checker(current_user: dict = Depends(get_current_user)):
        if current_user["role"] not in roles:
            raise ForbiddenError(
                f"Role ({current_user['role']}) is not allowed to access this resource"
            )
        return current_user

    return checker


candidate_required = require_roles("candidate")
employer_required = require_roles("employer")
admin_required = require_roles("admin")
