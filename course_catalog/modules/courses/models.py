from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from course_catalog.db.base import Base
from course_catalog.db.mixins import TimestampMixin

if TYPE_CHECKING:
    from course_catalog.modules.auth.models import User
    from course_catalog.modules.enrollments.models import Enrollment


# text[] on PostgreSQL, JSON list elsewhere (SQLite test database)
CategoryTagType = ARRAY(Text).with_variant(JSON(), "sqlite")


class Course(TimestampMixin, Base):
    __tablename__ = "course"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Exact decimal, never float
    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2, asdecimal=True),
        nullable=False,
        default=Decimal("0.00"),
        server_default="0.00",
    )

    category_tag: Mapped[list[str]] = mapped_column(
        CategoryTagType,
        nullable=False,
        default=list,
    )

    thumbnail: Mapped[str | None] = mapped_column(Text, nullable=True)

    rating: Mapped[Decimal | None] = mapped_column(
        Numeric(3, 1, asdecimal=True), nullable=True
    )

    # Set only for authenticated creation; cleared when the user goes away
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    creator: Mapped["User | None"] = relationship(
        "User",
        back_populates="courses_created",
        foreign_keys=[created_by],
    )

    # Deletion is guarded by the service layer; the database cascades rows
    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment",
        back_populates="course",
        cascade="all",
        passive_deletes=True,
    )
