from uuid import UUID
from typing import Optional
from datetime import datetime

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from course_catalog.schemas.course import (
    CamelModel,
    CategoryTagList,
    PageLimit,
    PageOffset,
    RatingOut,
)


class EnrollmentCreate(CamelModel):
    course_id: UUID


class MyCoursesParams(CamelModel):
    limit: Optional[PageLimit] = None
    offset: Optional[PageOffset] = None


class EnrolledCourseRead(CamelModel):
    """Course as embedded in enrollment responses; price is numeric here."""

    id: UUID
    name: str
    price: float
    category_tag: CategoryTagList
    thumbnail: Optional[str] = None
    rating: RatingOut = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class EnrollmentRead(CamelModel):
    id: UUID
    user_id: UUID
    course_id: UUID
    enrolled_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EnrollmentWithCourseRead(EnrollmentRead):
    course: Optional[EnrolledCourseRead] = None


class EnrollmentDisplayRead(CamelModel):
    enrollment_status: str
    enrollment_date_display: str
    course_title: Optional[str] = None
    course_price_display: Optional[str] = None
    progress_percentage: int = 0


class MyCourseEntryRead(EnrollmentWithCourseRead):
    display: EnrollmentDisplayRead


class EnrollmentStatisticsRead(CamelModel):
    total_enrollments: int
    active_enrollments: int
    completed_enrollments: int
    total_spent: str
    average_course_price: str
    enrolled_categories: list[str]


class MyCoursesRead(CamelModel):
    enrollments: list[MyCourseEntryRead]
    total: int
    limit: Optional[int] = None
    offset: Optional[int] = None
    statistics: EnrollmentStatisticsRead


class EnrollmentIdParams(CamelModel):
    id: UUID


class UnenrollRead(CamelModel):
    success: bool
    enrollment_id: UUID
