from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from course_catalog.contracts import EnrollmentContracts, contract_route, parse_params
from course_catalog.db.deps import get_current_user_id_optional, get_db
from course_catalog.modules.enrollments.service import EnrollmentService
from course_catalog.schemas.enrollment import (
    EnrollmentCreate,
    EnrollmentIdParams,
    MyCoursesParams,
)

# Authentication is checked by the service so anonymous callers get the
# UNAUTHORIZED error body rather than a bare 401/403 from the bearer scheme.
router = APIRouter(tags=["enrollments"])


def my_courses_params(
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
) -> MyCoursesParams:
    return parse_params(MyCoursesParams, limit=limit, offset=offset)


@contract_route(router, EnrollmentContracts.enroll)
def enroll_course(
    payload: EnrollmentCreate,
    db: Session = Depends(get_db),
    current_user_id: Optional[UUID] = Depends(get_current_user_id_optional),
):
    """Enroll the current user in a course."""
    return EnrollmentService(db).enroll(payload, current_user_id)


# Registered before /enrollments/{id} so "my-courses" is not read as an id
@contract_route(router, EnrollmentContracts.my_courses)
def get_my_courses(
    params: MyCoursesParams = Depends(my_courses_params),
    db: Session = Depends(get_db),
    current_user_id: Optional[UUID] = Depends(get_current_user_id_optional),
):
    """Get current user's enrollments."""
    return EnrollmentService(db).get_my_courses(params, current_user_id)


@contract_route(router, EnrollmentContracts.get)
def get_enrollment(
    id: UUID = Path(...),
    db: Session = Depends(get_db),
    current_user_id: Optional[UUID] = Depends(get_current_user_id_optional),
):
    """Get enrollment by ID."""
    params = parse_params(EnrollmentIdParams, id=id)
    return EnrollmentService(db).get_enrollment(params.id, current_user_id)


@contract_route(router, EnrollmentContracts.unenroll)
def unenroll_course(
    enrollment_id: UUID = Path(..., alias="enrollmentId"),
    db: Session = Depends(get_db),
    current_user_id: Optional[UUID] = Depends(get_current_user_id_optional),
):
    """Delete an enrollment owned by the current user."""
    params = parse_params(EnrollmentIdParams, id=enrollment_id)
    return EnrollmentService(db).unenroll(params.id, current_user_id)
