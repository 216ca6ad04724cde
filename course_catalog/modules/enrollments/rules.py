"""
Enrollment business rules.

Everything here is pure except `validate_user_can_enroll`, which looks up the
user, the course and any prior enrollment before the handler writes.
"""

from __future__ import annotations

import enum
import math
import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from course_catalog.core.logging import get_logger
from course_catalog.db.mixins import utcnow
from course_catalog.modules.auth.repository import UserRepository
from course_catalog.modules.courses.repository import CourseRepository
from course_catalog.modules.courses.rules import (
    ValidationResult,
    VALID,
    get_course_display_information,
    parse_decimal,
)
from course_catalog.modules.enrollments.repository import EnrollmentRepository

logger = get_logger(__name__)

CENT = Decimal("0.01")


class EligibilityCode(str, enum.Enum):
    ELIGIBLE = "ELIGIBLE"
    INVALID_INPUT = "INVALID_INPUT"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    STORAGE_ERROR = "STORAGE_ERROR"


@dataclass(frozen=True)
class EnrollmentEligibility:
    can_enroll: bool
    reason: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)
    code: EligibilityCode = EligibilityCode.ELIGIBLE


@dataclass(frozen=True)
class RuleDecision:
    allowed: bool
    reason: Optional[str] = None


def validate_enrollment_data(course_id: Any, user_id: Any) -> ValidationResult:
    if not course_id or not str(course_id).strip():
        return ValidationResult(False, "Course ID is required", "courseId")

    if not user_id or not str(user_id).strip():
        return ValidationResult(False, "User ID is required", "userId")

    return VALID


def can_user_enroll(existing_enrollment: Any) -> RuleDecision:
    if existing_enrollment is not None:
        return RuleDecision(False, "User is already enrolled in this course")
    return RuleDecision(True)


def can_user_unenroll(user_id: Any, enrollment: Any) -> RuleDecision:
    if enrollment is None:
        return RuleDecision(False, "No enrollment record found")

    if str(enrollment.user_id) != str(user_id):
        return RuleDecision(
            False, "User can only unenroll from their own enrollments"
        )

    return RuleDecision(True)


def _as_aware(value: dt.datetime) -> dt.datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


def get_enrollment_status(
    enrollment: Any, now: Optional[dt.datetime] = None
) -> dict[str, Any]:
    """Enrollment state plus how many (started) days it has lasted."""
    now = now or utcnow()
    elapsed = abs((_as_aware(now) - _as_aware(enrollment.enrolled_at)).total_seconds())

    return {
        "is_enrolled": True,
        "enrolled_at": enrollment.enrolled_at,
        "enrollment_duration": math.ceil(elapsed / 86400),
    }


def validate_user_can_enroll(
    db: Session, user_id: Any, course_id: Any
) -> EnrollmentEligibility:
    """Pre-flight eligibility check against the store.

    Storage failures do not propagate; they come back as an ineligible
    result with ``code=STORAGE_ERROR``.
    """
    basic = validate_enrollment_data(course_id, user_id)
    if not basic.valid:
        return EnrollmentEligibility(
            False,
            basic.reason,
            {"field": basic.field},
            EligibilityCode.INVALID_INPUT,
        )

    try:
        if not UserRepository(db).exists(user_id):
            return EnrollmentEligibility(
                False, "User not found", code=EligibilityCode.USER_NOT_FOUND
            )

        if not CourseRepository(db).exists(course_id):
            return EnrollmentEligibility(
                False, "Course not found", code=EligibilityCode.COURSE_NOT_FOUND
            )

        existing = EnrollmentRepository(db).get_by_user_and_course(user_id, course_id)
        decision = can_user_enroll(existing)
        if not decision.allowed:
            return EnrollmentEligibility(
                False,
                decision.reason,
                {"enrollment_id": existing.id},
                EligibilityCode.ALREADY_ENROLLED,
            )
    except SQLAlchemyError as e:
        logger.warning(
            "enrollment eligibility check failed",
            user_id=str(user_id),
            course_id=str(course_id),
            error=str(e),
        )
        return EnrollmentEligibility(
            False,
            "Validation failed due to database error",
            {"error": e.__class__.__name__},
            EligibilityCode.STORAGE_ERROR,
        )

    return EnrollmentEligibility(True)


def get_enrollment_display_information(
    enrollment: Any, course: Any = None
) -> dict[str, Any]:
    """Summary shown next to each of a user's enrollments."""
    return {
        "enrollment_status": "Active",
        "enrollment_date_display": enrollment.enrolled_at.strftime("%d %b %Y"),
        "course_title": course.name if course is not None else None,
        "course_price_display": (
            get_course_display_information(course)["price_display"]
            if course is not None
            else None
        ),
        "progress_percentage": 0,
    }


def calculate_enrollment_statistics(enrollments: Iterable[Any]) -> dict[str, Any]:
    """Reduce already-fetched enrollments (with courses) to summary figures.

    Sums stay in Decimal and are rendered as two-place strings.
    """
    enrollments = list(enrollments)
    total = len(enrollments)
    # Nothing marks an enrollment completed yet
    active = total

    total_spent = Decimal("0")
    categories: list[str] = []

    for enrollment in enrollments:
        course = enrollment.course
        if course is None:
            continue
        total_spent += parse_decimal(course.price) or Decimal("0")
        for tag in course.category_tag or []:
            if tag not in categories:
                categories.append(tag)

    average = total_spent / total if total else Decimal("0")

    return {
        "total_enrollments": total,
        "active_enrollments": active,
        "completed_enrollments": total - active,
        "total_spent": str(total_spent.quantize(CENT)),
        "average_course_price": str(average.quantize(CENT)),
        "enrolled_categories": categories,
    }
