from __future__ import annotations

import uuid
import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from course_catalog.db.base import Base
from course_catalog.db.mixins import utcnow

if TYPE_CHECKING:
    from course_catalog.modules.courses.models import Course
    from course_catalog.modules.enrollments.models import Enrollment


class User(Base):
    """Identity row owned by the authentication provider.

    The catalog only reads it for existence checks and references it by
    foreign key from `course.created_by` and `course_enrollment.user_id`.
    """

    __tablename__ = "user"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    courses_created: Mapped[list["Course"]] = relationship(
        "Course",
        back_populates="creator",
        passive_deletes=True,
    )

    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment",
        back_populates="user",
        cascade="all",
        passive_deletes=True,
    )
