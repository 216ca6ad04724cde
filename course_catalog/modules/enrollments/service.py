from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from course_catalog.core.config import settings
from course_catalog.core.errors import (
    AlreadyEnrolled,
    DomainError,
    EnrollmentCourseNotFound,
    EnrollmentFailed,
    EnrollmentNotFound,
    EnrollmentUnauthorizedAccess,
    EnrollmentUserNotFound,
    EnrollmentValidationFailed,
    Unauthorized,
    validation_failed_for,
)
from course_catalog.core.logging import get_logger
from course_catalog.modules.courses.models import Course
from course_catalog.modules.courses.repository import CourseRepository
from course_catalog.modules.enrollments import rules
from course_catalog.modules.enrollments.models import Enrollment
from course_catalog.modules.enrollments.repository import EnrollmentRepository
from course_catalog.schemas.enrollment import (
    EnrolledCourseRead,
    EnrollmentCreate,
    EnrollmentDisplayRead,
    EnrollmentStatisticsRead,
    EnrollmentWithCourseRead,
    MyCourseEntryRead,
    MyCoursesParams,
    MyCoursesRead,
    UnenrollRead,
)

logger = get_logger(__name__)


def enrolled_course_view(course: Optional[Course]) -> Optional[EnrolledCourseRead]:
    """Course as embedded in enrollment responses, with a numeric price."""
    if course is None:
        return None
    return EnrolledCourseRead(
        id=course.id,
        name=course.name,
        price=float(course.price),
        category_tag=list(course.category_tag or []),
        thumbnail=course.thumbnail,
        rating=course.rating,
        created_by=course.created_by,
        created_at=course.created_at,
        updated_at=course.updated_at,
    )


def enrollment_view(enrollment: Enrollment) -> EnrollmentWithCourseRead:
    return EnrollmentWithCourseRead(
        id=enrollment.id,
        user_id=enrollment.user_id,
        course_id=enrollment.course_id,
        enrolled_at=enrollment.enrolled_at,
        course=enrolled_course_view(enrollment.course),
    )


class EnrollmentService:
    """Service layer for enrollment operations.

    Every operation needs an authenticated caller; the caller id is passed in
    explicitly and ``None`` means anonymous.
    """

    def __init__(self, db: Session):
        self.db = db
        self.enrollment_repo = EnrollmentRepository(db)
        self.course_repo = CourseRepository(db)

    def _storage_failure(
        self, operation: str, exc: SQLAlchemyError, reason: str
    ) -> DomainError:
        self.db.rollback()
        logger.error(
            "enrollment storage failure",
            operation=operation,
            error=exc.__class__.__name__,
            detail=str(exc),
        )
        return validation_failed_for("enrollment", "database", reason)

    def _eligibility_error(
        self,
        eligibility: rules.EnrollmentEligibility,
        user_id: uuid.UUID,
        course_id: uuid.UUID,
    ) -> DomainError:
        code = eligibility.code
        if code == rules.EligibilityCode.USER_NOT_FOUND:
            return EnrollmentUserNotFound(user_id=user_id)
        if code == rules.EligibilityCode.COURSE_NOT_FOUND:
            return EnrollmentCourseNotFound(course_id=course_id)
        if code == rules.EligibilityCode.ALREADY_ENROLLED:
            return AlreadyEnrolled(
                user_id=user_id,
                course_id=course_id,
                enrollment_id=eligibility.details.get("enrollment_id"),
            )
        if code == rules.EligibilityCode.INVALID_INPUT:
            return EnrollmentValidationFailed(
                field=eligibility.details.get("field") or "courseId",
                reason=eligibility.reason,
            )
        return EnrollmentFailed(
            user_id=user_id,
            course_id=course_id,
            reason=eligibility.reason or "Enrollment eligibility check failed",
        )

    def enroll(
        self, payload: EnrollmentCreate, current_user_id: Optional[uuid.UUID]
    ) -> EnrollmentWithCourseRead:
        """Enroll the caller in a course."""
        if current_user_id is None:
            raise Unauthorized(operation="enroll-course")

        user_id = current_user_id
        course_id = payload.course_id

        eligibility = rules.validate_user_can_enroll(self.db, user_id, course_id)
        if not eligibility.can_enroll:
            logger.info(
                "enrollment rejected",
                user_id=str(user_id),
                course_id=str(course_id),
                reason=eligibility.reason,
            )
            raise self._eligibility_error(eligibility, user_id, course_id)

        try:
            if not self.course_repo.exists(course_id):
                raise EnrollmentCourseNotFound(course_id=course_id)

            existing = self.enrollment_repo.get_by_user_and_course(user_id, course_id)
            if existing:
                raise AlreadyEnrolled(
                    user_id=user_id,
                    course_id=course_id,
                    enrollment_id=existing.id,
                )

            enrollment = self.enrollment_repo.create(
                user_id=user_id, course_id=course_id
            )
            self.db.commit()

            created = self.enrollment_repo.get_by_id(enrollment.id)
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "enroll", e, "Failed to enroll in course"
            ) from e

        if created is None:
            raise EnrollmentFailed(
                user_id=user_id,
                course_id=course_id,
                reason="Failed to retrieve created enrollment",
            )

        logger.info(
            "created enrollment",
            enrollment_id=str(created.id),
            user_id=str(user_id),
            course_id=str(course_id),
        )
        return enrollment_view(created)

    def get_my_courses(
        self, params: MyCoursesParams, current_user_id: Optional[uuid.UUID]
    ) -> MyCoursesRead:
        """The caller's enrollments with display summaries and statistics."""
        if current_user_id is None:
            raise Unauthorized(operation="get-my-courses")

        limit = settings.DEFAULT_PAGE_LIMIT if params.limit is None else params.limit
        offset = 0 if params.offset is None else params.offset

        try:
            enrollments, total = self.enrollment_repo.list_by_user(
                current_user_id, limit=limit, offset=offset
            )
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "get_my_courses", e, "Failed to retrieve enrollments"
            ) from e

        entries = [
            MyCourseEntryRead(
                **enrollment_view(enrollment).model_dump(),
                display=EnrollmentDisplayRead(
                    **rules.get_enrollment_display_information(
                        enrollment, enrollment.course
                    )
                ),
            )
            for enrollment in enrollments
        ]

        return MyCoursesRead(
            enrollments=entries,
            total=total,
            limit=limit,
            offset=offset,
            statistics=EnrollmentStatisticsRead(
                **rules.calculate_enrollment_statistics(enrollments)
            ),
        )

    def get_enrollment(
        self, enrollment_id: uuid.UUID, current_user_id: Optional[uuid.UUID]
    ) -> EnrollmentWithCourseRead:
        """One of the caller's enrollments."""
        if current_user_id is None:
            raise Unauthorized(operation="get-enrollment")

        try:
            enrollment = self.enrollment_repo.get_by_id(enrollment_id)
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "get_enrollment", e, "Failed to retrieve enrollment"
            ) from e

        if not enrollment:
            raise EnrollmentNotFound(id=enrollment_id)

        if enrollment.user_id != current_user_id:
            raise EnrollmentUnauthorizedAccess(
                enrollment_id=enrollment_id, user_id=current_user_id
            )

        return enrollment_view(enrollment)

    def unenroll(
        self, enrollment_id: uuid.UUID, current_user_id: Optional[uuid.UUID]
    ) -> UnenrollRead:
        """Remove one of the caller's enrollments."""
        if current_user_id is None:
            raise Unauthorized(operation="unenroll-course")

        try:
            enrollment = self.enrollment_repo.get_by_id(enrollment_id)
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "unenroll", e, "Failed to retrieve enrollment"
            ) from e

        if not enrollment:
            raise EnrollmentNotFound(id=enrollment_id)

        decision = rules.can_user_unenroll(current_user_id, enrollment)
        if not decision.allowed:
            raise EnrollmentUnauthorizedAccess(
                enrollment_id=enrollment_id, user_id=current_user_id
            )

        try:
            self.enrollment_repo.delete(enrollment)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._storage_failure(
                "unenroll", e, "Failed to unenroll from course"
            ) from e

        logger.info(
            "deleted enrollment",
            enrollment_id=str(enrollment_id),
            user_id=str(current_user_id),
        )
        return UnenrollRead(success=True, enrollment_id=enrollment_id)
