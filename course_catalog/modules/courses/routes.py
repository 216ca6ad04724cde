from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from course_catalog.contracts import CourseContracts, contract_route, parse_params
from course_catalog.db.deps import get_current_user_id_optional, get_db
from course_catalog.modules.courses.service import CourseService
from course_catalog.schemas.course import (
    CourseCreate,
    CourseIdParams,
    CourseListParams,
    CourseUpdate,
)

router = APIRouter(tags=["courses"])


def course_list_params(
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    category_tag: Optional[List[str]] = Query(None, alias="categoryTag"),
) -> CourseListParams:
    return parse_params(
        CourseListParams, limit=limit, offset=offset, category_tag=category_tag
    )


def course_id_params(id: UUID = Path(...)) -> CourseIdParams:
    return parse_params(CourseIdParams, id=id)


@contract_route(router, CourseContracts.list_courses)
def list_courses(
    params: CourseListParams = Depends(course_list_params),
    db: Session = Depends(get_db),
):
    """List courses, newest first."""
    return CourseService(db).list_courses(params)


@contract_route(router, CourseContracts.popular)
def get_popular_courses(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Courses ranked by enrollment count."""
    return CourseService(db).get_popular_courses(limit=limit)


@contract_route(router, CourseContracts.statistics)
def get_course_statistics(db: Session = Depends(get_db)):
    """Catalogue-wide statistics."""
    return CourseService(db).get_statistics()


@contract_route(router, CourseContracts.get)
def get_course(
    params: CourseIdParams = Depends(course_id_params),
    db: Session = Depends(get_db),
):
    """Get course by ID."""
    return CourseService(db).get_course(params.id)


@contract_route(router, CourseContracts.create)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    current_user_id: Optional[UUID] = Depends(get_current_user_id_optional),
):
    """Create a new course; authenticated callers become its creator."""
    return CourseService(db).create_course(payload, current_user_id=current_user_id)


@contract_route(router, CourseContracts.update)
def update_course(
    payload: CourseUpdate,
    params: CourseIdParams = Depends(course_id_params),
    db: Session = Depends(get_db),
):
    """Update a course."""
    return CourseService(db).update_course(params.id, payload)


@contract_route(router, CourseContracts.delete)
def delete_course(
    params: CourseIdParams = Depends(course_id_params),
    db: Session = Depends(get_db),
):
    """Delete a course."""
    return CourseService(db).delete_course(params.id)
