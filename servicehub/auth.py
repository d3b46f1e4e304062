from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from .config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

ROLES = ("client", "specialist", "admin")

security = HTTPBearer()


@dataclass(frozen=True)
class Actor:
    """Caller identity taken from the token, passed explicitly to the core"""
    user_id: int
    role: str


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Створити JWT токен (для інструментів та тестів; видає сервіс ідентичності)"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def get_current_actor(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Actor:
    """Перевірити JWT токен"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Не авторизовано",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
        role: str = payload.get("role")
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise credentials_exception

    if role not in ROLES:
        raise credentials_exception

    return Actor(user_id=user_id, role=role)


def require_role(role: str):
    """Dependency factory: only callers with the given role pass"""
    def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Недостатньо прав доступу"
            )
        return actor
    return role_checker


get_current_client = require_role("client")
get_current_specialist_user = require_role("specialist")
get_current_admin = require_role("admin")
