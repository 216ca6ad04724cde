"""
Error taxonomy shared by every layer of the course catalog.

Each failure mode is a named kind with a default message, an HTTP status and
a structured payload (``data``) so callers can act on it programmatically.
Course and enrollment kinds live in separate families; both families have a
``NOT_FOUND`` and a ``VALIDATION_FAILED`` kind, told apart by ``domain``.
"""

from __future__ import annotations

import enum
from typing import Any, Dict, Optional


class CourseErrorCode(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_CATEGORY_TAGS = "INVALID_CATEGORY_TAGS"
    INVALID_RATING = "INVALID_RATING"
    FREE_COURSE_HIGH_RATING = "FREE_COURSE_HIGH_RATING"
    CREATOR_NOT_FOUND = "CREATOR_NOT_FOUND"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    CANNOT_DELETE = "CANNOT_DELETE"
    CANNOT_UPDATE = "CANNOT_UPDATE"


class EnrollmentErrorCode(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    ENROLLMENT_FAILED = "ENROLLMENT_FAILED"
    CANNOT_UNENROLL = "CANNOT_UNENROLL"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    UNAUTHORIZED = "UNAUTHORIZED"


class DomainError(Exception):
    """
    Base class for every taxonomy error.

    Attributes:
        domain: Error family ("course" or "enrollment")
        code: Machine-readable kind, e.g. ``NOT_FOUND``
        message: Human-readable message (defaults per kind)
        data: Structured payload describing the failure
        status_code: HTTP status used when the error crosses the boundary
    """

    domain: str = "course"
    code: str = "INTERNAL"
    default_message: str = "Unexpected error"
    status_code: int = 500

    def __init__(self, message: Optional[str] = None, **data: Any):
        self.message = message or self.default_message
        self.data: Dict[str, Any] = data
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to the response body shape."""
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, data={self.data!r})"


# ---------- COURSE ERRORS ----------


class CourseError(DomainError):
    domain = "course"


class CourseNotFound(CourseError):
    code = CourseErrorCode.NOT_FOUND.value
    default_message = "Course not found"
    status_code = 404

    def __init__(self, id: Any, message: Optional[str] = None):
        super().__init__(message, id=str(id))


class CourseValidationFailed(CourseError):
    code = CourseErrorCode.VALIDATION_FAILED.value
    default_message = "Course validation failed"
    status_code = 400

    def __init__(self, field: str, reason: str, message: Optional[str] = None):
        super().__init__(message, field=field, reason=reason)


class InvalidPrice(CourseError):
    code = CourseErrorCode.INVALID_PRICE.value
    default_message = "Invalid course price"
    status_code = 400

    def __init__(self, price: Any, reason: str, message: Optional[str] = None):
        super().__init__(message, price=str(price), reason=reason)


class InvalidCategoryTags(CourseError):
    code = CourseErrorCode.INVALID_CATEGORY_TAGS.value
    default_message = "Invalid category tags"
    status_code = 400

    def __init__(self, tags: list[str], reason: str, message: Optional[str] = None):
        super().__init__(message, tags=list(tags), reason=reason)


class InvalidRating(CourseError):
    code = CourseErrorCode.INVALID_RATING.value
    default_message = "Invalid course rating"
    status_code = 400

    def __init__(self, rating: Any, reason: str, message: Optional[str] = None):
        super().__init__(message, rating=str(rating), reason=reason)


class FreeCourseHighRating(CourseError):
    code = CourseErrorCode.FREE_COURSE_HIGH_RATING.value
    default_message = "Free courses cannot have ratings above 3.0"
    status_code = 400

    def __init__(self, price: Any, rating: Any, message: Optional[str] = None):
        super().__init__(message, price=str(price), rating=str(rating))


class CreatorNotFound(CourseError):
    code = CourseErrorCode.CREATOR_NOT_FOUND.value
    default_message = "Course creator not found"
    status_code = 404

    def __init__(self, creator_id: Any, message: Optional[str] = None):
        super().__init__(message, creatorId=str(creator_id))


class CourseUnauthorizedAccess(CourseError):
    code = CourseErrorCode.UNAUTHORIZED_ACCESS.value
    default_message = "Unauthorized access to course"
    status_code = 403

    def __init__(self, course_id: Any, user_id: Any, message: Optional[str] = None):
        super().__init__(message, courseId=str(course_id), userId=str(user_id))


class CannotDeleteCourse(CourseError):
    code = CourseErrorCode.CANNOT_DELETE.value
    default_message = "Course cannot be deleted"
    status_code = 409

    def __init__(self, id: Any, reason: str, message: Optional[str] = None):
        super().__init__(message, id=str(id), reason=reason)


class CannotUpdateCourse(CourseError):
    code = CourseErrorCode.CANNOT_UPDATE.value
    default_message = "Course cannot be updated"
    status_code = 409

    def __init__(self, id: Any, reason: str, message: Optional[str] = None):
        super().__init__(message, id=str(id), reason=reason)


# ---------- ENROLLMENT ERRORS ----------


class EnrollmentError(DomainError):
    domain = "enrollment"


class EnrollmentNotFound(EnrollmentError):
    code = EnrollmentErrorCode.NOT_FOUND.value
    default_message = "Enrollment not found"
    status_code = 404

    def __init__(self, id: Any, message: Optional[str] = None):
        super().__init__(message, id=str(id))


class EnrollmentCourseNotFound(EnrollmentError):
    code = EnrollmentErrorCode.COURSE_NOT_FOUND.value
    default_message = "Course not found for enrollment"
    status_code = 404

    def __init__(self, course_id: Any, message: Optional[str] = None):
        super().__init__(message, courseId=str(course_id))


class EnrollmentUserNotFound(EnrollmentError):
    code = EnrollmentErrorCode.USER_NOT_FOUND.value
    default_message = "User not found for enrollment"
    status_code = 404

    def __init__(self, user_id: Any, message: Optional[str] = None):
        super().__init__(message, userId=str(user_id))


class AlreadyEnrolled(EnrollmentError):
    code = EnrollmentErrorCode.ALREADY_ENROLLED.value
    default_message = "User is already enrolled in this course"
    status_code = 409

    def __init__(
        self,
        user_id: Any,
        course_id: Any,
        enrollment_id: Any = None,
        message: Optional[str] = None,
    ):
        data: Dict[str, Any] = {"userId": str(user_id), "courseId": str(course_id)}
        if enrollment_id is not None:
            data["enrollmentId"] = str(enrollment_id)
        super().__init__(message, **data)


class EnrollmentFailed(EnrollmentError):
    code = EnrollmentErrorCode.ENROLLMENT_FAILED.value
    default_message = "Failed to enroll in course"
    status_code = 500

    def __init__(self, user_id: Any, course_id: Any, reason: str, message: Optional[str] = None):
        super().__init__(message, userId=str(user_id), courseId=str(course_id), reason=reason)


class CannotUnenroll(EnrollmentError):
    code = EnrollmentErrorCode.CANNOT_UNENROLL.value
    default_message = "Cannot unenroll from course"
    status_code = 409

    def __init__(self, enrollment_id: Any, reason: str, message: Optional[str] = None):
        super().__init__(message, enrollmentId=str(enrollment_id), reason=reason)


class EnrollmentUnauthorizedAccess(EnrollmentError):
    code = EnrollmentErrorCode.UNAUTHORIZED_ACCESS.value
    default_message = "Unauthorized access to enrollment"
    status_code = 403

    def __init__(self, enrollment_id: Any, user_id: Any, message: Optional[str] = None):
        super().__init__(message, enrollmentId=str(enrollment_id), userId=str(user_id))


class EnrollmentValidationFailed(EnrollmentError):
    code = EnrollmentErrorCode.VALIDATION_FAILED.value
    default_message = "Enrollment validation failed"
    status_code = 400

    def __init__(self, field: str, reason: str, message: Optional[str] = None):
        super().__init__(message, field=field, reason=reason)


class Unauthorized(EnrollmentError):
    code = EnrollmentErrorCode.UNAUTHORIZED.value
    default_message = "Authentication required for this operation"
    status_code = 401

    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(message, operation=operation)


# Every kind a family may raise
COURSE_ERRORS: frozenset[type[DomainError]] = frozenset(
    {
        CourseNotFound,
        CourseValidationFailed,
        InvalidPrice,
        InvalidCategoryTags,
        InvalidRating,
        FreeCourseHighRating,
        CreatorNotFound,
        CourseUnauthorizedAccess,
        CannotDeleteCourse,
        CannotUpdateCourse,
    }
)

ENROLLMENT_ERRORS: frozenset[type[DomainError]] = frozenset(
    {
        EnrollmentNotFound,
        EnrollmentCourseNotFound,
        EnrollmentUserNotFound,
        AlreadyEnrolled,
        EnrollmentFailed,
        CannotUnenroll,
        EnrollmentUnauthorizedAccess,
        EnrollmentValidationFailed,
        Unauthorized,
    }
)


def validation_failed_for(domain: str, field: str, reason: str) -> DomainError:
    """Build the family-appropriate VALIDATION_FAILED error."""
    if domain == "enrollment":
        return EnrollmentValidationFailed(field=field, reason=reason)
    return CourseValidationFailed(field=field, reason=reason)
