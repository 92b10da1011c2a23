"""
Admin auth: one league admin, hashed password check and JWT.
Credentials come from the environment: ADMIN_USER plus ADMIN_PASS_HASH (a passlib
pbkdf2_sha256 hash) or ADMIN_PASS (plain, hashed on first use).
"""
from __future__ import annotations

import hmac
import os
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from passlib.context import CryptContext
from jose import JWTError, jwt

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "ffl-dev-secret-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 12
ADMIN_SUBJECT = "admin"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


@lru_cache(maxsize=4)
def _hash_plain(password: str) -> str:
    return hash_password(password)


def _admin_password_hash() -> str:
    configured = os.environ.get("ADMIN_PASS_HASH")
    if configured:
        return configured
    plain = os.environ.get("ADMIN_PASS")
    return _hash_plain(plain) if plain else ""


def verify_admin(username: str, password: str) -> bool:
    """True only when admin credentials are configured and match."""
    expected_user = os.environ.get("ADMIN_USER")
    if not expected_user:
        return False
    if not hmac.compare_digest(username.encode("utf-8"), expected_user.encode("utf-8")):
        return False
    return verify_password(password, _admin_password_hash())


def create_access_token(subject: str = ADMIN_SUBJECT) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": subject, "exp": expire}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> str | None:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload.get("sub")
    except JWTError:
        return None
