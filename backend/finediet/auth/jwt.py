from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from finediet.config import settings


def _encode(user_id: str, role: str, token_type: str, expires_in: timedelta) -> str:
    expire = datetime.now(timezone.utc) + expires_in
    payload = {"sub": user_id, "role": role, "exp": expire, "type": token_type}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: str, role: str = "user") -> str:
    return _encode(user_id, role, "access", timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(user_id: str, role: str = "user") -> str:
    return _encode(user_id, role, "refresh", timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
