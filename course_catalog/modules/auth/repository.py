from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from course_catalog.modules.auth.models import User


class UserRepository:
    """Read-only access to the identity rows owned by the auth provider."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID."""
        return self.db.query(User).filter(User.id == user_id).first()

    def exists(self, user_id: uuid.UUID) -> bool:
        """Check whether a user row exists."""
        return (
            self.db.query(User.id).filter(User.id == user_id).first() is not None
        )
