"""Auth: JWT issue and validation."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from .config import JWT_ALGORITHM, JWT_EXPIRE_HOURS, JWT_SECRET


def create_jwt(user_id: int) -> str:
    now = datetime.now(timezone.utc)
    return jwt.encode(
        {"user_id": user_id, "exp": now + timedelta(hours=JWT_EXPIRE_HOURS), "iat": now},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


def decode_jwt(token: str) -> Optional[int]:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    user_id = payload.get("user_id")
    return user_id if isinstance(user_id, int) else None
