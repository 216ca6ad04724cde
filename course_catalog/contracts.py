"""
Contract registry.

A `Contract` names one operation exposed at the HTTP boundary and binds its
method and path, input and output schemas, access level and the closed set of
error kinds it may raise. `contract_route` turns a contract plus an endpoint
function into a FastAPI route and keeps the endpoint honest about that set.
"""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from fastapi import APIRouter, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from course_catalog.core.errors import (
    COURSE_ERRORS,
    ENROLLMENT_ERRORS,
    AlreadyEnrolled,
    CannotDeleteCourse,
    CannotUnenroll,
    CannotUpdateCourse,
    CourseNotFound,
    CourseValidationFailed,
    CreatorNotFound,
    DomainError,
    EnrollmentCourseNotFound,
    EnrollmentFailed,
    EnrollmentNotFound,
    EnrollmentUnauthorizedAccess,
    EnrollmentUserNotFound,
    EnrollmentValidationFailed,
    FreeCourseHighRating,
    InvalidCategoryTags,
    InvalidPrice,
    InvalidRating,
    Unauthorized,
    validation_failed_for,
)
from course_catalog.core.logging import get_logger
from course_catalog.schemas.course import (
    CourseCreate,
    CourseDeleteRead,
    CourseIdParams,
    CourseListParams,
    CourseListRead,
    CourseRead,
    CourseStatisticsRead,
    CourseUpdate,
    PopularCourseRead,
)
from course_catalog.schemas.enrollment import (
    EnrollmentCreate,
    EnrollmentIdParams,
    EnrollmentWithCourseRead,
    MyCoursesParams,
    MyCoursesRead,
    UnenrollRead,
)

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class Access(str, enum.Enum):
    public = "public"
    authenticated = "authenticated"


class ErrorBody(BaseModel):
    code: str
    message: str
    data: dict[str, Any] = {}


COURSE_BASE_ERRORS = frozenset({CourseNotFound, CourseValidationFailed})
ENROLLMENT_BASE_ERRORS = frozenset({Unauthorized, EnrollmentValidationFailed})

_FAMILIES = {
    "course": (COURSE_BASE_ERRORS, COURSE_ERRORS),
    "enrollment": (ENROLLMENT_BASE_ERRORS, ENROLLMENT_ERRORS),
}


def declare_errors(domain: str, *extra: type[DomainError]) -> frozenset:
    """Base set of ``domain`` plus ``extra``; every kind must belong to the family."""
    base, family = _FAMILIES[domain]
    stray = [kind.__name__ for kind in extra if kind not in family]
    if stray:
        raise ValueError(f"{', '.join(stray)} not in the {domain} error family")
    return base | frozenset(extra)


@dataclass(frozen=True)
class Contract:
    operation_id: str
    method: str
    path: str
    summary: str
    description: str
    tags: tuple[str, ...]
    domain: str
    input_schema: Optional[type[BaseModel]]
    output_schema: Any
    errors: frozenset
    access: Access = Access.public
    status_code: int = status.HTTP_200_OK

    def declares(self, error: DomainError) -> bool:
        return type(error) in self.errors

    def error_codes(self) -> list[str]:
        return sorted({kind.code for kind in self.errors})

    def responses(self) -> dict[int, dict[str, Any]]:
        """OpenAPI error responses, one entry per status code."""
        by_status: dict[int, list[str]] = {}
        for kind in self.errors:
            by_status.setdefault(kind.status_code, []).append(kind.code)
        return {
            code: {"model": ErrorBody, "description": ", ".join(sorted(kinds))}
            for code, kinds in sorted(by_status.items())
        }


class CourseContracts:
    list_courses = Contract(
        operation_id="getCourses",
        method="GET",
        path="/courses",
        summary="List courses",
        description="Paginated course list, optionally filtered by category tag "
        "(a course matches when it carries any of the requested tags).",
        tags=("courses",),
        domain="course",
        input_schema=CourseListParams,
        output_schema=CourseListRead,
        errors=declare_errors("course", InvalidCategoryTags),
    )

    popular = Contract(
        operation_id="getPopularCourses",
        method="GET",
        path="/courses/popular",
        summary="Popular courses",
        description="Courses ranked by enrollment count.",
        tags=("courses",),
        domain="course",
        input_schema=None,
        output_schema=list[PopularCourseRead],
        errors=declare_errors("course"),
    )

    statistics = Contract(
        operation_id="getCourseStatistics",
        method="GET",
        path="/courses/statistics",
        summary="Catalogue statistics",
        description="Total, free, paid and per-tag course counts plus average rating.",
        tags=("courses",),
        domain="course",
        input_schema=None,
        output_schema=CourseStatisticsRead,
        errors=declare_errors("course"),
    )

    get = Contract(
        operation_id="getCourse",
        method="GET",
        path="/course/{id}",
        summary="Get course",
        description="Fetch a single course by id.",
        tags=("courses",),
        domain="course",
        input_schema=CourseIdParams,
        output_schema=CourseRead,
        errors=declare_errors("course"),
    )

    create = Contract(
        operation_id="createCourse",
        method="POST",
        path="/courses",
        summary="Create course",
        description="Create a course. Anyone may create one; authenticated "
        "callers are recorded as its creator.",
        tags=("courses",),
        domain="course",
        input_schema=CourseCreate,
        output_schema=CourseRead,
        errors=declare_errors(
            "course",
            InvalidPrice,
            InvalidCategoryTags,
            InvalidRating,
            FreeCourseHighRating,
            CreatorNotFound,
        ),
        status_code=status.HTTP_201_CREATED,
    )

    update = Contract(
        operation_id="updateCourse",
        method="PUT",
        path="/course/{id}",
        summary="Update course",
        description="Partially update a course; omitted fields keep their values.",
        tags=("courses",),
        domain="course",
        input_schema=CourseUpdate,
        output_schema=CourseRead,
        errors=declare_errors(
            "course",
            InvalidPrice,
            InvalidCategoryTags,
            InvalidRating,
            FreeCourseHighRating,
            CannotUpdateCourse,
        ),
    )

    delete = Contract(
        operation_id="deleteCourse",
        method="DELETE",
        path="/course/{id}",
        summary="Delete course",
        description="Delete a course that has no enrollments.",
        tags=("courses",),
        domain="course",
        input_schema=CourseIdParams,
        output_schema=CourseDeleteRead,
        errors=declare_errors("course", CannotDeleteCourse),
    )


class EnrollmentContracts:
    enroll = Contract(
        operation_id="enrollCourse",
        method="POST",
        path="/enrollments",
        summary="Enroll in course",
        description="Enroll the authenticated caller in a course.",
        tags=("enrollments",),
        domain="enrollment",
        input_schema=EnrollmentCreate,
        output_schema=EnrollmentWithCourseRead,
        errors=declare_errors(
            "enrollment",
            EnrollmentCourseNotFound,
            EnrollmentUserNotFound,
            AlreadyEnrolled,
            EnrollmentFailed,
        ),
        access=Access.authenticated,
        status_code=status.HTTP_201_CREATED,
    )

    my_courses = Contract(
        operation_id="getMyCourses",
        method="GET",
        path="/enrollments/my-courses",
        summary="My courses",
        description="The caller's enrollments with course details and statistics.",
        tags=("enrollments",),
        domain="enrollment",
        input_schema=MyCoursesParams,
        output_schema=MyCoursesRead,
        errors=declare_errors("enrollment"),
        access=Access.authenticated,
    )

    get = Contract(
        operation_id="getEnrollment",
        method="GET",
        path="/enrollments/{id}",
        summary="Get enrollment",
        description="Fetch one of the caller's enrollments.",
        tags=("enrollments",),
        domain="enrollment",
        input_schema=EnrollmentIdParams,
        output_schema=EnrollmentWithCourseRead,
        errors=declare_errors(
            "enrollment", EnrollmentNotFound, EnrollmentUnauthorizedAccess
        ),
        access=Access.authenticated,
    )

    unenroll = Contract(
        operation_id="unenrollCourse",
        method="DELETE",
        path="/enrollments/{enrollmentId}",
        summary="Unenroll from course",
        description="Remove one of the caller's enrollments.",
        tags=("enrollments",),
        domain="enrollment",
        input_schema=EnrollmentIdParams,
        output_schema=UnenrollRead,
        errors=declare_errors(
            "enrollment",
            EnrollmentNotFound,
            CannotUnenroll,
            EnrollmentUnauthorizedAccess,
        ),
        access=Access.authenticated,
    )


def all_contracts() -> list[Contract]:
    contracts: list[Contract] = []
    for namespace in (CourseContracts, EnrollmentContracts):
        contracts.extend(
            value for value in vars(namespace).values() if isinstance(value, Contract)
        )
    return contracts


def parse_params(model: type[ModelT], **values: Any) -> ModelT:
    """Build a params model from query/path values, 422 on failure.

    ``None`` values are dropped so the model's defaults apply.
    """
    try:
        return model(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


def contract_route(router: APIRouter, contract: Contract) -> Callable:
    """Register the decorated endpoint on ``router`` as ``contract``.

    Domain errors outside the contract's declared set are logged and turned
    into a VALIDATION_FAILED error with ``field="internal"``.
    """

    def decorator(endpoint: Callable) -> Callable:
        @functools.wraps(endpoint)
        def guarded(*args: Any, **kwargs: Any) -> Any:
            try:
                return endpoint(*args, **kwargs)
            except DomainError as exc:
                if contract.declares(exc):
                    raise
                logger.error(
                    "undeclared error kind",
                    operation=contract.operation_id,
                    domain=exc.domain,
                    code=exc.code,
                    data=exc.data,
                )
                raise validation_failed_for(
                    contract.domain,
                    "internal",
                    f"Operation {contract.operation_id} failed unexpectedly",
                ) from exc

        router.add_api_route(
            contract.path,
            guarded,
            methods=[contract.method],
            response_model=contract.output_schema,
            status_code=contract.status_code,
            operation_id=contract.operation_id,
            summary=contract.summary,
            description=contract.description,
            tags=list(contract.tags),
            responses=contract.responses(),
        )
        return guarded

    return decorator
