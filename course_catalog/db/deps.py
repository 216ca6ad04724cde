from __future__ import annotations

from collections.abc import Generator
import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from course_catalog.db.session import SessionLocal
from course_catalog.core.logging import get_logger
from course_catalog.core.security import decode_access_token

logger = get_logger(__name__)


# ---------- DB DEPENDENCY ----------


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---------- AUTH DEPENDENCIES ----------

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[uuid.UUID]:
    """Resolve the caller's user id from a bearer token, or None.

    Handlers decide whether a missing caller is acceptable; an unreadable
    token is treated the same as no token at all.
    """
    if credentials is None or not credentials.credentials:
        return None

    try:
        payload = decode_access_token(credentials.credentials)
        sub = payload.get("sub")
        if sub is None:
            logger.warning("access token without subject")
            return None
        return uuid.UUID(sub)
    except (JWTError, ValueError) as exc:
        logger.warning("rejected access token", error=str(exc))
        return None
