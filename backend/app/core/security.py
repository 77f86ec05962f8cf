import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.hash import pbkdf2_sha256 as hasher

from app.core.config import Settings


def hash_password(password: str) -> str:
    return hasher.hash(password or "")

def verify_password(password: str, hashed: str) -> bool:
    try:
        return hasher.verify(password or "", hashed)
    except ValueError:
        # empty/legacy/invalid hash formats
        return False

def create_access_token(sub: str, settings: Settings, minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    ttl = settings.access_ttl_min if minutes is None else minutes
    payload = {"sub": sub, "iat": now, "exp": now + timedelta(minutes=ttl),
               "jti": secrets.token_hex(8)}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_alg)

def decode_token(token: str, settings: Settings) -> Optional[str]:
    try:
        data = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
    except jwt.InvalidTokenError:
        return None
    return data.get("sub")

def new_refresh_token() -> str:
    return secrets.token_urlsafe(48)

def refresh_expiry(settings: Settings) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=settings.refresh_ttl_days)
