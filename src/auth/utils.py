from datetime import timedelta
from typing import Optional

import jwt
from passlib.context import CryptContext

from src.auth.schemas import TokenData
from src.clock import utc_now
from src.config import settings
from src.exceptions import AuthenticationError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed token carrying the user's id, email and role"""
    now = utc_now()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def verify_token(token: str) -> TokenData:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return TokenData(**payload)
    except jwt.PyJWTError as e:
        raise AuthenticationError(f"Invalid token: {e}")
    except ValueError:
        raise AuthenticationError("Invalid token: malformed claims")
