# app/security.py
# Role: Password hashing, JWT issue/verify, and small account helpers
#       (email validation, avatar assignment) shared by the auth routes.

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from jose import jwt
from passlib.context import CryptContext
from pydantic import EmailStr, TypeAdapter, ValidationError

from config import Settings

MIN_PASSWORD_LENGTH = 6

DEFAULT_AVATAR = "https://images.pexels.com/photos/220453/pexels-photo-220453.jpeg?auto=compress&cs=tinysrgb&w=150"

AVATARS = [
    DEFAULT_AVATAR,
    "https://images.pexels.com/photos/415829/pexels-photo-415829.jpeg?auto=compress&cs=tinysrgb&w=150",
    "https://images.pexels.com/photos/1040880/pexels-photo-1040880.jpeg?auto=compress&cs=tinysrgb&w=150",
    "https://images.pexels.com/photos/1043471/pexels-photo-1043471.jpeg?auto=compress&cs=tinysrgb&w=150",
    "https://images.pexels.com/photos/1181686/pexels-photo-1181686.jpeg?auto=compress&cs=tinysrgb&w=150",
    "https://images.pexels.com/photos/1300402/pexels-photo-1300402.jpeg?auto=compress&cs=tinysrgb&w=150",
]

_email_adapter = TypeAdapter(EmailStr)


@lru_cache(maxsize=None)
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def get_password_hash(password: str, rounds: int = 12) -> str:
    return _crypt_context(rounds).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    # the cost factor is read back from the hash itself
    return _crypt_context(12).verify(plain_password, hashed_password)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    """Raises jose.JWTError on a bad signature, malformed token or expiry."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def token_for_user(user: Dict[str, Any], settings: Settings) -> str:
    return create_access_token(
        {
            "id": str(user["_id"]),
            "email": user["email"],
            "name": user["name"],
            "role": user.get("role", "user"),
        },
        settings,
    )


def is_valid_email(email: str) -> bool:
    """Accept a bare address only. EmailStr also takes the "Name <addr>" form."""
    try:
        validated = _email_adapter.validate_python(email)
    except ValidationError:
        return False
    return validated.lower() == email.lower()


def is_valid_password(password: Optional[str]) -> bool:
    return bool(password) and len(password) >= MIN_PASSWORD_LENGTH


def normalize_email(email: str) -> str:
    return email.strip().lower()


def avatar_for_name(name: str) -> str:
    """Pick a stable avatar for a name using a 32-bit rolling string hash."""
    h = 0
    for ch in name:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return AVATARS[abs(h) % len(AVATARS)]


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(user["_id"]),
        "name": user["name"],
        "email": user["email"],
        "role": user.get("role", "user"),
        "avatar": user.get("avatar"),
    }
