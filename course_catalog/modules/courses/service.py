from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from course_catalog.core.config import settings
from course_catalog.core.errors import (
    CannotDeleteCourse,
    CannotUpdateCourse,
    CourseNotFound,
    CourseValidationFailed,
    DomainError,
    InvalidCategoryTags,
    validation_failed_for,
)
from course_catalog.core.logging import get_logger
from course_catalog.modules.courses import rules
from course_catalog.modules.courses.models import Course
from course_catalog.modules.courses.repository import CourseRepository
from course_catalog.modules.enrollments.repository import EnrollmentRepository
from course_catalog.schemas.course import (
    MAX_PAGE_LIMIT,
    MIN_PAGE_LIMIT,
    CourseCreate,
    CourseDeleteRead,
    CourseListParams,
    CourseListRead,
    CourseRead,
    CourseRules,
    CourseStatisticsRead,
    CourseUpdate,
    PopularCourseRead,
    format_decimal,
    normalise_tags,
)

logger = get_logger(__name__)

POPULAR_COURSES_LIMIT = 10


class CourseService:
    """Service layer for course operations."""

    def __init__(self, db: Session):
        self.db = db
        self.course_repo = CourseRepository(db)
        self.enrollment_repo = EnrollmentRepository(db)

    def _storage_failure(
        self, operation: str, exc: SQLAlchemyError, reason: str
    ) -> DomainError:
        self.db.rollback()
        logger.error(
            "course storage failure",
            operation=operation,
            error=exc.__class__.__name__,
            detail=str(exc),
        )
        return validation_failed_for("course", "database", reason)

    @staticmethod
    def _raise_first_failure(failures: list[rules.ValidationResult]) -> None:
        if failures:
            first = failures[0]
            raise CourseValidationFailed(field=first.field, reason=first.reason)

    def list_courses(self, params: CourseListParams) -> CourseListRead:
        """List courses with optional category filter and pagination."""
        tags = normalise_tags(params.category_tag)
        if tags:
            result = rules.validate_category_tags(tags)
            if not result.valid:
                raise InvalidCategoryTags(tags=tags, reason=result.reason)

        limit = settings.DEFAULT_PAGE_LIMIT if params.limit is None else params.limit
        offset = 0 if params.offset is None else params.offset

        if limit < MIN_PAGE_LIMIT:
            raise CourseValidationFailed(
                field="limit", reason=f"Limit must be at least {MIN_PAGE_LIMIT}"
            )
        if limit > MAX_PAGE_LIMIT:
            raise CourseValidationFailed(
                field="limit", reason=f"Limit cannot exceed {MAX_PAGE_LIMIT}"
            )
        if offset < 0:
            raise CourseValidationFailed(
                field="offset", reason="Offset cannot be negative"
            )

        try:
            courses, total = self.course_repo.list(
                limit=limit, offset=offset, category_tags=tags or None
            )
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "list_courses", e, "Failed to retrieve courses"
            ) from e

        return CourseListRead(
            courses=[CourseRead.model_validate(course) for course in courses],
            total=total,
            limit=limit,
            offset=offset,
        )

    def get_course(self, course_id: uuid.UUID) -> Course:
        """Get course by ID."""
        try:
            course = self.course_repo.get_by_id(course_id)
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "get_course", e, "Failed to retrieve course"
            ) from e

        if not course:
            raise CourseNotFound(id=course_id)
        return course

    def create_course(
        self, payload: CourseCreate, current_user_id: Optional[uuid.UUID] = None
    ) -> Course:
        """Create a new course, attributed to the caller when authenticated."""
        self._raise_first_failure(
            rules.validate_complete_course(CourseRules.from_create(payload))
        )

        try:
            course = self.course_repo.create(
                name=payload.name,
                price=Decimal(payload.price),
                category_tag=payload.category_tag,
                thumbnail=payload.thumbnail,
                rating=Decimal(payload.rating) if payload.rating is not None else None,
                created_by=current_user_id,
            )
            self.db.commit()
            self.db.refresh(course)
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "create_course", e, "Failed to create course"
            ) from e

        logger.info(
            "created course",
            course_id=str(course.id),
            created_by=str(current_user_id) if current_user_id else None,
        )
        return course

    def update_course(self, course_id: uuid.UUID, payload: CourseUpdate) -> Course:
        """Partially update a course; only supplied fields are written."""
        course = self.get_course(course_id)

        updates = payload.model_dump(exclude_unset=True)
        self._raise_first_failure(
            rules.validate_complete_course(CourseRules.merged(course, updates))
        )

        if not rules.can_course_be_updated(course):
            raise CannotUpdateCourse(
                id=course_id, reason="Course cannot be updated in its current state"
            )

        if "price" in updates:
            updates["price"] = Decimal(updates["price"])
        if updates.get("rating") is not None:
            updates["rating"] = Decimal(updates["rating"])

        try:
            course = self.course_repo.update(course, **updates)
            self.db.commit()
            self.db.refresh(course)
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "update_course", e, "Failed to update course"
            ) from e

        logger.info(
            "updated course", course_id=str(course.id), fields=sorted(updates)
        )
        return course

    def delete_course(self, course_id: uuid.UUID) -> CourseDeleteRead:
        """Delete a course that nobody is enrolled in."""
        course = self.get_course(course_id)

        try:
            enrollment_count = self.enrollment_repo.count_for_course(course_id)
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "delete_course", e, "Failed to check course enrollments"
            ) from e

        if not rules.can_course_be_deleted(course, enrollment_count):
            logger.warning(
                "blocked course deletion",
                course_id=str(course_id),
                enrollment_count=enrollment_count,
            )
            raise CannotDeleteCourse(
                id=course_id,
                reason=f"Course has {enrollment_count} active enrollments",
            )

        try:
            self.course_repo.delete(course)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "delete_course", e, "Failed to delete course"
            ) from e

        logger.info("deleted course", course_id=str(course_id))
        return CourseDeleteRead(success=True, id=course_id)

    def get_popular_courses(
        self, limit: int = POPULAR_COURSES_LIMIT
    ) -> list[PopularCourseRead]:
        """Courses ranked by how many users are enrolled."""
        try:
            rows = self.course_repo.get_popular(limit=limit)
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "get_popular_courses", e, "Failed to retrieve popular courses"
            ) from e

        return [
            PopularCourseRead(
                course=CourseRead.model_validate(course),
                enrollment_count=count,
            )
            for course, count in rows
        ]

    def get_statistics(self) -> CourseStatisticsRead:
        """Catalogue-wide counts and average rating."""
        try:
            stats = self.course_repo.get_statistics()
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "get_statistics", e, "Failed to compute course statistics"
            ) from e

        average = stats.pop("average_rating")
        return CourseStatisticsRead(
            **stats,
            average_rating=format_decimal(average, 1) if average is not None else None,
        )
