from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from course_catalog.db.mixins import utcnow
from course_catalog.modules.courses.models import Course
from course_catalog.modules.enrollments.models import Enrollment


class CourseRepository:
    """Repository for Course entity with CRUD and catalogue queries.

    Reads return None / empty results when nothing matches. Writes only
    flush; committing (or rolling back) is the caller's decision.
    """

    def __init__(self, db: Session):
        self.db = db

    def _has_any_tag(self, tags: list[str]):
        """Filter matching courses whose tag list contains ANY of ``tags``."""
        if self.db.get_bind().dialect.name == "postgresql":
            return Course.category_tag.overlap(tags)
        # JSON-encoded list elsewhere: match the quoted element
        encoded = cast(Course.category_tag, String)
        return or_(*[encoded.contains(f'"{tag}"', autoescape=True) for tag in tags])

    def get_by_id(self, course_id: uuid.UUID) -> Optional[Course]:
        """Get course by ID."""
        return self.db.query(Course).filter(Course.id == course_id).first()

    def exists(self, course_id: uuid.UUID) -> bool:
        """Check whether a course exists."""
        return (
            self.db.query(Course.id).filter(Course.id == course_id).first() is not None
        )

    def list(
        self,
        limit: int = 50,
        offset: int = 0,
        category_tags: Optional[list[str]] = None,
    ) -> tuple[list[Course], int]:
        """List courses newest first, optionally filtered by category tags."""
        query = self.db.query(Course)
        if category_tags:
            query = query.filter(self._has_any_tag(category_tags))

        total = query.count()
        courses = (
            query.order_by(Course.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return courses, total

    def create(
        self,
        name: str,
        price: Decimal = Decimal("0.00"),
        category_tag: Optional[list[str]] = None,
        thumbnail: Optional[str] = None,
        rating: Optional[Decimal] = None,
        created_by: Optional[uuid.UUID] = None,
    ) -> Course:
        """Create a new course."""
        now = utcnow()
        course = Course(
            name=name,
            price=price,
            category_tag=list(category_tag or []),
            thumbnail=thumbnail,
            rating=rating,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        self.db.add(course)
        self.db.flush()
        return course

    def update(self, course: Course, **kwargs: Any) -> Course:
        """Update only the supplied course fields; always bumps updated_at."""
        for key, value in kwargs.items():
            if hasattr(course, key):
                setattr(course, key, value)
        course.updated_at = utcnow()
        self.db.flush()
        return course

    def delete(self, course: Course) -> None:
        """Delete course (hard delete)."""
        self.db.delete(course)
        self.db.flush()

    def search(
        self, query: str, limit: int = 50, offset: int = 0
    ) -> tuple[list[Course], int]:
        """Case-insensitive search on course name."""
        base = self.db.query(Course).filter(Course.name.ilike(f"%{query}%"))
        total = base.count()
        courses = (
            base.order_by(Course.created_at.desc()).offset(offset).limit(limit).all()
        )
        return courses, total

    def list_by_creator(
        self, creator_id: uuid.UUID, limit: int = 50, offset: int = 0
    ) -> tuple[list[Course], int]:
        """List all courses created by a user."""
        base = self.db.query(Course).filter(Course.created_by == creator_id)
        total = base.count()
        courses = (
            base.order_by(Course.created_at.desc()).offset(offset).limit(limit).all()
        )
        return courses, total

    def get_popular(self, limit: int = 10) -> list[tuple[Course, int]]:
        """Courses ranked by enrollment count, highest first."""
        enrollment_count = func.count(Enrollment.id)
        rows = (
            self.db.query(Course, enrollment_count)
            .outerjoin(Enrollment, Enrollment.course_id == Course.id)
            .group_by(Course.id)
            .order_by(enrollment_count.desc(), Course.created_at.desc())
            .limit(limit)
            .all()
        )
        return [(course, count) for course, count in rows]

    def get_statistics(self) -> dict[str, Any]:
        """Aggregate counts over the whole catalogue."""
        total = self.db.query(func.count(Course.id)).scalar() or 0
        free = (
            self.db.query(func.count(Course.id)).filter(Course.price == 0).scalar() or 0
        )
        paid = (
            self.db.query(func.count(Course.id)).filter(Course.price > 0).scalar() or 0
        )
        prakerja = (
            self.db.query(func.count(Course.id))
            .filter(self._has_any_tag(["prakerja"]))
            .scalar()
            or 0
        )
        spl = (
            self.db.query(func.count(Course.id))
            .filter(self._has_any_tag(["spl"]))
            .scalar()
            or 0
        )
        average_rating = (
            self.db.query(func.avg(Course.rating))
            .filter(Course.rating.is_not(None))
            .scalar()
        )

        return {
            "total_courses": total,
            "free_courses": free,
            "paid_courses": paid,
            "prakerja_courses": prakerja,
            "spl_courses": spl,
            "average_rating": average_rating,
        }
