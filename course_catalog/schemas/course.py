"""
Course schemas.

Four groups live here:
- base primitives: reusable annotated field types (name, decimal strings,
  URL, pagination bounds)
- input schemas: one per course operation
- output schemas: single course, paginated list and delete acknowledgement
- cross-field rules view (`CourseRules`) consumed by the domain rules rather
  than the HTTP boundary

Prices and ratings travel as fixed-point decimal strings ("100.00", "4.5")
so no value passes through binary floating point on the way in or out.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel


PRICE_PATTERN = r"^\d+(\.\d{1,2})?$"
RATING_PATTERN = r"^\d(\.\d)?$"

MIN_RATING = Decimal("1.0")
MAX_RATING = Decimal("5.0")
MIN_PAGE_LIMIT = 1
MAX_PAGE_LIMIT = 100

_url_adapter = TypeAdapter(AnyUrl)


# ---------- BASE PRIMITIVES ----------


def _check_price(value: str) -> str:
    if Decimal(value) < 0:
        raise ValueError("Price cannot be negative")
    return value


def _check_rating(value: str) -> str:
    rating = Decimal(value)
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValueError("Rating must be between 1.0 and 5.0")
    return value


def is_valid_url(value: str) -> bool:
    """True for any absolute URL (scheme plus location)."""
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def _check_url(value: str) -> str:
    if not is_valid_url(value):
        raise ValueError("Thumbnail must be a valid URL")
    return value


def format_decimal(value: Any, places: int) -> Any:
    """Render a Decimal (or decimal-like) as a fixed-point string."""
    if value is None or isinstance(value, str):
        return value
    try:
        return f"{Decimal(str(value)):.{places}f}"
    except InvalidOperation:
        return value


CourseName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]

PriceStr = Annotated[
    str,
    StringConstraints(pattern=PRICE_PATTERN),
    AfterValidator(_check_price),
]

RatingStr = Annotated[
    str,
    StringConstraints(pattern=RATING_PATTERN),
    AfterValidator(_check_rating),
]

ThumbnailUrl = Annotated[str, AfterValidator(_check_url)]

CategoryTagList = list[str]

PageLimit = Annotated[int, Field(ge=MIN_PAGE_LIMIT, le=MAX_PAGE_LIMIT)]
PageOffset = Annotated[int, Field(ge=0)]

# Output-side decimal rendering: Decimal from the database -> "100.00" / "4.5"
PriceOut = Annotated[str, BeforeValidator(lambda v: format_decimal(v, 2))]
RatingOut = Annotated[Optional[str], BeforeValidator(lambda v: format_decimal(v, 1))]


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------- INPUT SCHEMAS ----------


class CourseCreate(CamelModel):
    name: CourseName
    price: PriceStr = "0.00"
    category_tag: CategoryTagList = Field(default_factory=list)
    thumbnail: Optional[ThumbnailUrl] = None
    rating: Optional[RatingStr] = None


class CourseUpdate(CamelModel):
    name: Optional[CourseName] = None
    price: Optional[PriceStr] = None
    category_tag: Optional[CategoryTagList] = None
    thumbnail: Optional[ThumbnailUrl] = None
    rating: Optional[RatingStr] = None

    @field_validator("name", "price", "category_tag", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        # thumbnail and rating may be cleared with null, these may not
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class CourseIdParams(CamelModel):
    id: UUID


class CourseListParams(CamelModel):
    limit: Optional[PageLimit] = None
    offset: Optional[PageOffset] = None
    category_tag: Optional[CategoryTagList] = None


# ---------- OUTPUT SCHEMAS ----------


class CourseRead(CamelModel):
    id: UUID
    name: str
    price: PriceOut
    category_tag: CategoryTagList
    thumbnail: Optional[str] = None
    rating: RatingOut = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CourseListRead(CamelModel):
    courses: list[CourseRead]
    total: int
    limit: Optional[int] = None
    offset: Optional[int] = None


class CourseDeleteRead(CamelModel):
    success: bool
    id: UUID


class PopularCourseRead(CamelModel):
    course: CourseRead
    enrollment_count: int


class CourseStatisticsRead(CamelModel):
    total_courses: int
    free_courses: int
    paid_courses: int
    prakerja_courses: int
    spl_courses: int
    average_rating: Optional[str] = None


# ---------- CROSS-FIELD RULES VIEW ----------


class CourseRules(CamelModel):
    """Course fields as seen by the domain rules.

    Only fields present in ``model_fields_set`` are validated, so the same
    view serves full creates and partial updates. ``merged`` overlays an
    update onto the stored course so rules spanning fields (rating vs.
    price) see the effective values.
    """

    name: Optional[str] = None
    price: Optional[str] = None
    category_tag: Optional[list[str]] = None
    rating: Optional[str] = None
    thumbnail: Optional[str] = None

    @classmethod
    def from_create(cls, payload: CourseCreate) -> "CourseRules":
        return cls(
            name=payload.name,
            price=payload.price,
            category_tag=list(payload.category_tag),
            rating=payload.rating,
            thumbnail=payload.thumbnail,
        )

    @classmethod
    def merged(cls, course: Any, updates: dict[str, Any]) -> "CourseRules":
        current = {
            "name": course.name,
            "price": format_decimal(course.price, 2),
            "category_tag": list(course.category_tag or []),
            "rating": format_decimal(course.rating, 1),
            "thumbnail": course.thumbnail,
        }
        current.update(updates)
        return cls(**current)

    def is_present(self, field: str) -> bool:
        return field in self.model_fields_set


def normalise_tags(tags: Optional[list[str]]) -> list[str]:
    """Split comma-joined query values ("prakerja,spl") into tags."""
    result: list[str] = []
    for raw in tags or []:
        result.extend(part for part in re.split(r"\s*,\s*", raw) if part)
    return result
