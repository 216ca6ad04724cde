"""
Tests for the enrollment service (operation handlers).
"""
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from course_catalog.core.errors import (
    AlreadyEnrolled,
    EnrollmentCourseNotFound,
    EnrollmentNotFound,
    EnrollmentUnauthorizedAccess,
    EnrollmentUserNotFound,
    EnrollmentValidationFailed,
    Unauthorized,
)
from course_catalog.modules.enrollments.service import EnrollmentService
from course_catalog.schemas.enrollment import EnrollmentCreate, MyCoursesParams


class TestEnroll:
    """Enrolling the current user."""

    def test_anonymous_caller_is_rejected(self, db, paid_course):
        with pytest.raises(Unauthorized) as exc_info:
            EnrollmentService(db).enroll(EnrollmentCreate(course_id=paid_course.id), None)
        assert exc_info.value.data == {"operation": "enroll-course"}

    def test_enroll_returns_course_with_numeric_price(
        self, db, student_user, paid_course
    ):
        result = EnrollmentService(db).enroll(
            EnrollmentCreate(course_id=paid_course.id), student_user.id
        )

        assert result.user_id == student_user.id
        assert result.course_id == paid_course.id
        assert result.course.price == 1500000.0
        assert isinstance(result.course.price, float)

    def test_second_enrollment_reports_first_id(self, db, student_user, paid_course):
        service = EnrollmentService(db)
        first = service.enroll(EnrollmentCreate(course_id=paid_course.id), student_user.id)

        with pytest.raises(AlreadyEnrolled) as exc_info:
            service.enroll(EnrollmentCreate(course_id=paid_course.id), student_user.id)

        assert exc_info.value.data == {
            "userId": str(student_user.id),
            "courseId": str(paid_course.id),
            "enrollmentId": str(first.id),
        }

    def test_unknown_course(self, db, student_user):
        with pytest.raises(EnrollmentCourseNotFound):
            EnrollmentService(db).enroll(EnrollmentCreate(course_id=uuid4()), student_user.id)

    def test_caller_without_user_row(self, db, paid_course):
        ghost = uuid4()
        with pytest.raises(EnrollmentUserNotFound) as exc_info:
            EnrollmentService(db).enroll(EnrollmentCreate(course_id=paid_course.id), ghost)
        assert exc_info.value.data == {"userId": str(ghost)}

    def test_storage_error_after_precheck(self, db, student_user, paid_course, monkeypatch):
        service = EnrollmentService(db)

        def broken(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("disk full"))

        monkeypatch.setattr(service.enrollment_repo, "create", broken)

        with pytest.raises(EnrollmentValidationFailed) as exc_info:
            service.enroll(EnrollmentCreate(course_id=paid_course.id), student_user.id)
        assert exc_info.value.data["field"] == "database"


class TestMyCourses:
    """Listing the current user's enrollments."""

    def test_anonymous_caller_is_rejected(self, db):
        with pytest.raises(Unauthorized):
            EnrollmentService(db).get_my_courses(MyCoursesParams(), None)

    def test_only_own_enrollments_with_statistics(
        self, db, student_user, other_user, paid_course, free_course, enrollment
    ):
        service = EnrollmentService(db)
        service.enroll(EnrollmentCreate(course_id=free_course.id), student_user.id)
        service.enroll(EnrollmentCreate(course_id=paid_course.id), other_user.id)

        result = service.get_my_courses(MyCoursesParams(), student_user.id)

        assert result.total == 2
        assert result.limit == 50
        assert result.offset == 0
        assert [e.course.name for e in result.enrollments] == [
            "Intro to Git",
            "Data Analysis",
        ]
        assert result.enrollments[0].display.course_price_display == "Free"
        assert result.enrollments[1].display.course_price_display == "Rp 1,500,000"
        assert result.statistics.total_spent == "1500000.00"
        assert result.statistics.average_course_price == "750000.00"
        assert result.statistics.enrolled_categories == ["spl", "prakerja"]

    def test_statistics_cover_fetched_page_only(
        self, db, student_user, paid_course, free_course, enrollment
    ):
        service = EnrollmentService(db)
        service.enroll(EnrollmentCreate(course_id=free_course.id), student_user.id)

        result = service.get_my_courses(MyCoursesParams(limit=1), student_user.id)

        assert result.total == 2
        assert len(result.enrollments) == 1
        assert result.statistics.total_enrollments == 1


class TestGetAndUnenroll:
    """Ownership checks on single enrollments."""

    def test_get_own_enrollment(self, db, student_user, enrollment):
        result = EnrollmentService(db).get_enrollment(enrollment.id, student_user.id)
        assert result.id == enrollment.id
        assert result.course.name == "Data Analysis"

    def test_get_someone_elses_enrollment(self, db, other_user, enrollment):
        with pytest.raises(EnrollmentUnauthorizedAccess):
            EnrollmentService(db).get_enrollment(enrollment.id, other_user.id)

    def test_get_missing_enrollment(self, db, student_user):
        with pytest.raises(EnrollmentNotFound):
            EnrollmentService(db).get_enrollment(uuid4(), student_user.id)

    def test_unenroll_by_non_owner(self, db, other_user, enrollment):
        with pytest.raises(EnrollmentUnauthorizedAccess) as exc_info:
            EnrollmentService(db).unenroll(enrollment.id, other_user.id)
        assert exc_info.value.data == {
            "enrollmentId": str(enrollment.id),
            "userId": str(other_user.id),
        }

    def test_unenroll_by_owner(self, db, student_user, paid_course, enrollment):
        service = EnrollmentService(db)
        enrollment_id = enrollment.id

        result = service.unenroll(enrollment_id, student_user.id)

        assert result.success is True
        assert result.enrollment_id == enrollment_id
        assert service.enrollment_repo.is_user_enrolled(student_user.id, paid_course.id) is False

    def test_unenroll_requires_caller(self, db, enrollment):
        with pytest.raises(Unauthorized) as exc_info:
            EnrollmentService(db).unenroll(enrollment.id, None)
        assert exc_info.value.data == {"operation": "unenroll-course"}
