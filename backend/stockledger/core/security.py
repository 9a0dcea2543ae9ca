from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from stockledger.core.config import Settings, get_settings
from stockledger.core.errors import Unauthenticated
from stockledger.schemas.auth import Identity


ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    identity: Identity,
    settings: Settings | None = None,
    expires_minutes: int | None = None,
) -> str:
    settings = settings or get_settings()
    expire_minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    to_encode: dict[str, Any] = {"sub": str(identity.id), "username": identity.username, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any] | None:
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


def verify_token(token: str | None, settings: Settings | None = None) -> Identity:
    """Turn a bearer token into the caller's identity or raise ``Unauthenticated``."""
    if not token:
        raise Unauthenticated("missing token")

    claims = decode_access_token(token, settings)
    if not claims:
        raise Unauthenticated("invalid token")

    try:
        user_id = int(str(claims.get("sub")))
    except ValueError:
        raise Unauthenticated("invalid token") from None
    username = str(claims.get("username") or "")
    if user_id <= 0 or not username:
        raise Unauthenticated("invalid token")
    return Identity(id=user_id, username=username)
