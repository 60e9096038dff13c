from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict

from jose import jwt
from passlib.context import CryptContext

from ..config import get_settings

if TYPE_CHECKING:
    from ..db.models import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
ALGORITHM = "HS256"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: Dict[str, Any], expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    claims = dict(data)
    issued_at = datetime.now(timezone.utc)
    claims["iat"] = issued_at
    claims["exp"] = issued_at + (expires_delta or timedelta(minutes=settings.jwt_expire_min))
    return jwt.encode(claims, settings.jwt_secret, algorithm=ALGORITHM)


def create_user_token(user: "User") -> str:
    """Token whose ``sub`` is the user id; the role claim is informational only."""
    return create_access_token({"sub": str(user.id), "role": user.role.value})


def decode_access_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
