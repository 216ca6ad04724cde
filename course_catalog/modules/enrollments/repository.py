from __future__ import annotations

import uuid
import datetime as dt
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from course_catalog.db.mixins import utcnow
from course_catalog.modules.enrollments.models import Enrollment


RECENT_WINDOW_DAYS = 30
AVERAGE_WINDOW_DAYS = 90


class EnrollmentRepository:
    """Repository for Enrollment entity with CRUD and per-user/per-course queries."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, enrollment_id: uuid.UUID) -> Optional[Enrollment]:
        """Get enrollment by ID with its course loaded."""
        return (
            self.db.query(Enrollment)
            .options(joinedload(Enrollment.course))
            .filter(Enrollment.id == enrollment_id)
            .first()
        )

    def get_by_user_and_course(
        self, user_id: uuid.UUID, course_id: uuid.UUID
    ) -> Optional[Enrollment]:
        """Get enrollment by user and course."""
        return (
            self.db.query(Enrollment)
            .filter(
                Enrollment.user_id == user_id,
                Enrollment.course_id == course_id,
            )
            .first()
        )

    def list_by_user(
        self, user_id: uuid.UUID, limit: int = 50, offset: int = 0
    ) -> tuple[list[Enrollment], int]:
        """List a user's enrollments, newest first, with courses loaded."""
        base = self.db.query(Enrollment).filter(Enrollment.user_id == user_id)
        total = base.count()
        enrollments = (
            base.options(joinedload(Enrollment.course))
            .order_by(Enrollment.enrolled_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return enrollments, total

    def list_by_course(
        self, course_id: uuid.UUID, limit: int = 50, offset: int = 0
    ) -> tuple[list[Enrollment], int]:
        """List enrollments for a course, newest first."""
        base = self.db.query(Enrollment).filter(Enrollment.course_id == course_id)
        total = base.count()
        enrollments = (
            base.order_by(Enrollment.enrolled_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return enrollments, total

    def create(self, user_id: uuid.UUID, course_id: uuid.UUID) -> Enrollment:
        """Create a new enrollment."""
        enrollment = Enrollment(
            user_id=user_id,
            course_id=course_id,
            enrolled_at=utcnow(),
        )
        self.db.add(enrollment)
        self.db.flush()
        return enrollment

    def delete(self, enrollment: Enrollment) -> None:
        """Delete enrollment."""
        self.db.delete(enrollment)
        self.db.flush()

    def delete_by_user_and_course(
        self, user_id: uuid.UUID, course_id: uuid.UUID
    ) -> bool:
        """Delete the enrollment for a user/course pair, if any."""
        deleted = (
            self.db.query(Enrollment)
            .filter(
                Enrollment.user_id == user_id,
                Enrollment.course_id == course_id,
            )
            .delete(synchronize_session="fetch")
        )
        self.db.flush()
        return deleted > 0

    def is_user_enrolled(self, user_id: uuid.UUID, course_id: uuid.UUID) -> bool:
        """Check if a user is enrolled in a course."""
        return (
            self.db.query(Enrollment.id)
            .filter(
                Enrollment.user_id == user_id,
                Enrollment.course_id == course_id,
            )
            .first()
            is not None
        )

    def count_by_course(self) -> list[tuple[uuid.UUID, int]]:
        """Enrollment count per course, highest first."""
        enrollment_count = func.count(Enrollment.id)
        rows = (
            self.db.query(Enrollment.course_id, enrollment_count)
            .group_by(Enrollment.course_id)
            .order_by(enrollment_count.desc())
            .all()
        )
        return [(course_id, count) for course_id, count in rows]

    def count_for_course(self, course_id: uuid.UUID) -> int:
        """Number of enrollments referencing a course."""
        count = (
            self.db.query(func.count(Enrollment.id))
            .filter(Enrollment.course_id == course_id)
            .scalar()
        )
        return count or 0

    def count_by_user(self, user_id: uuid.UUID) -> int:
        """Number of courses a user is enrolled in."""
        count = (
            self.db.query(func.count(Enrollment.id))
            .filter(Enrollment.user_id == user_id)
            .scalar()
        )
        return count or 0

    def get_course_statistics(
        self, course_id: uuid.UUID, now: Optional[dt.datetime] = None
    ) -> dict[str, Any]:
        """Total, last-30-days and per-day (90-day window) enrollment figures."""
        now = now or utcnow()
        base = self.db.query(func.count(Enrollment.id)).filter(
            Enrollment.course_id == course_id
        )
        total = base.scalar() or 0
        recent = (
            base.filter(
                Enrollment.enrolled_at >= now - dt.timedelta(days=RECENT_WINDOW_DAYS)
            ).scalar()
            or 0
        )
        window = (
            base.filter(
                Enrollment.enrolled_at >= now - dt.timedelta(days=AVERAGE_WINDOW_DAYS)
            ).scalar()
            or 0
        )

        return {
            "total_enrollments": total,
            "recent_enrollments": recent,
            "average_enrollments_per_day": window / AVERAGE_WINDOW_DAYS,
        }

    def get_user_statistics(self, user_id: uuid.UUID) -> dict[str, Any]:
        """Free/paid split, spend and per-tag counts over a user's enrollments."""
        enrollments = (
            self.db.query(Enrollment)
            .options(joinedload(Enrollment.course))
            .filter(Enrollment.user_id == user_id)
            .all()
        )

        stats: dict[str, Any] = {
            "total_enrollments": len(enrollments),
            "free_courses": 0,
            "paid_courses": 0,
            "total_spent": Decimal("0.00"),
            "prakerja_courses": 0,
            "spl_courses": 0,
        }

        for enrollment in enrollments:
            course = enrollment.course
            price = Decimal(course.price) if course and course.price is not None else Decimal("0")
            tags = (course.category_tag or []) if course else []

            if price == 0:
                stats["free_courses"] += 1
            else:
                stats["paid_courses"] += 1
                stats["total_spent"] += price

            if "prakerja" in tags:
                stats["prakerja_courses"] += 1
            if "spl" in tags:
                stats["spl_courses"] += 1

        return stats
