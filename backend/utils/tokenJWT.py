# utils/tokenJWT.py
from dataclasses import dataclass, field
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import FrozenSet, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import UserRole

# Authorization scheme; tokens are issued by the external auth provider
bearer_scheme = HTTPBearer()


# Authenticated caller as seen by this service
@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role("admin")


# Generate a new JWT access token (used by tooling and tests; production tokens come from the auth provider)
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> CurrentUser:
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM], options={"verify_aud": False}
        )
        user_id: str = payload.get("sub")
        # Ensure the subject is present in the token payload
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    roles = db.query(UserRole.role).filter(UserRole.user_id == user_id).all()
    return CurrentUser(id=user_id, email=payload.get("email"), roles=frozenset(r[0] for r in roles))

# Dependency factory for Role-Based Access Control
def role_required(*allowed_roles):
    def _checker(current_user: CurrentUser = Depends(get_current_user)):
        if allowed_roles and not any(current_user.has_role(r) for r in allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden"
            )
        return current_user
    return _checker
