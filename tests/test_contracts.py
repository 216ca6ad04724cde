"""
Tests for the contract registry and the error taxonomy.
"""
import pytest
from fastapi import APIRouter

from course_catalog.contracts import (
    COURSE_BASE_ERRORS,
    ENROLLMENT_BASE_ERRORS,
    Access,
    CourseContracts,
    EnrollmentContracts,
    all_contracts,
    contract_route,
    declare_errors,
)
from course_catalog.core.errors import (
    COURSE_ERRORS,
    ENROLLMENT_ERRORS,
    AlreadyEnrolled,
    CannotDeleteCourse,
    CourseNotFound,
    CourseValidationFailed,
    EnrollmentNotFound,
    EnrollmentValidationFailed,
    validation_failed_for,
)
from course_catalog.main import app


class TestRegistry:
    """Every operation is declared once with a closed error set."""

    def test_operation_ids(self):
        assert sorted(c.operation_id for c in all_contracts()) == [
            "createCourse",
            "deleteCourse",
            "enrollCourse",
            "getCourse",
            "getCourseStatistics",
            "getCourses",
            "getEnrollment",
            "getMyCourses",
            "getPopularCourses",
            "unenrollCourse",
            "updateCourse",
        ]

    def test_error_sets_extend_their_family_base(self):
        for contract in all_contracts():
            if contract.domain == "course":
                assert COURSE_BASE_ERRORS <= contract.errors <= COURSE_ERRORS
            else:
                assert ENROLLMENT_BASE_ERRORS <= contract.errors <= ENROLLMENT_ERRORS

    def test_enrollment_operations_require_authentication(self):
        for contract in all_contracts():
            expected = Access.authenticated if contract.domain == "enrollment" else Access.public
            assert contract.access == expected

    def test_declaring_a_foreign_kind_fails(self):
        with pytest.raises(ValueError):
            declare_errors("course", AlreadyEnrolled)

    def test_create_contract(self):
        contract = CourseContracts.create
        assert contract.status_code == 201
        assert "FREE_COURSE_HIGH_RATING" in contract.error_codes()
        assert set(contract.responses()) == {400, 404}

    def test_public_course_contracts_have_no_access_errors(self):
        for contract in (CourseContracts.update, CourseContracts.delete):
            assert "UNAUTHORIZED_ACCESS" not in contract.error_codes()
        assert set(CourseContracts.delete.responses()) == {400, 404, 409}

    def test_routes_are_registered(self):
        paths = app.openapi()["paths"]
        for contract in all_contracts():
            operation = paths[contract.path][contract.method.lower()]
            assert operation["operationId"] == contract.operation_id

    def test_openapi_uses_contract_operation_ids(self):
        schema = app.openapi()
        operation = schema["paths"]["/enrollments/{enrollmentId}"]["delete"]
        assert operation["operationId"] == "unenrollCourse"
        assert "409" in operation["responses"]


class TestContractRoute:
    """The route wrapper enforces the declared error set."""

    def _guarded(self, contract, error):
        def endpoint():
            raise error

        return contract_route(APIRouter(), contract)(endpoint)

    def test_declared_error_passes_through(self):
        error = CourseNotFound(id="abc")
        with pytest.raises(CourseNotFound) as exc_info:
            self._guarded(CourseContracts.get, error)()
        assert exc_info.value is error

    def test_undeclared_error_becomes_internal_validation_failure(self):
        guarded = self._guarded(
            CourseContracts.get, CannotDeleteCourse(id="abc", reason="nope")
        )
        with pytest.raises(CourseValidationFailed) as exc_info:
            guarded()
        assert exc_info.value.data["field"] == "internal"

    def test_undeclared_error_uses_contract_domain(self):
        guarded = self._guarded(EnrollmentContracts.enroll, EnrollmentNotFound(id="x"))
        with pytest.raises(EnrollmentValidationFailed):
            guarded()


class TestErrorTaxonomy:
    """Error payloads and helpers."""

    def test_not_found_kinds_share_code_but_not_domain(self):
        course = CourseNotFound(id="1")
        enrollment = EnrollmentNotFound(id="1")
        assert course.code == enrollment.code == "NOT_FOUND"
        assert course.domain != enrollment.domain

    def test_already_enrolled_optional_id(self):
        without = AlreadyEnrolled(user_id="u", course_id="c")
        with_id = AlreadyEnrolled(user_id="u", course_id="c", enrollment_id="e")
        assert "enrollmentId" not in without.data
        assert with_id.to_dict() == {
            "code": "ALREADY_ENROLLED",
            "message": "User is already enrolled in this course",
            "data": {"userId": "u", "courseId": "c", "enrollmentId": "e"},
        }

    def test_validation_failed_for(self):
        assert isinstance(
            validation_failed_for("course", "database", "x"), CourseValidationFailed
        )
        assert isinstance(
            validation_failed_for("enrollment", "database", "x"),
            EnrollmentValidationFailed,
        )

    def test_custom_message(self):
        error = CourseNotFound(id="1", message="Gone")
        assert str(error) == "Gone"
        assert error.status_code == 404
