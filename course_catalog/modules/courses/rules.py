"""
Course business rules.

Pure, deterministic checks the schema layer cannot express on its own:
the category-tag whitelist, price bounds, the rating/price correlation for
free courses, and the delete/update guards. Nothing here touches the
database; callers pass in whatever state a rule needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from course_catalog.schemas.course import CourseRules, is_valid_url


MAX_NAME_LENGTH = 255
MAX_CATEGORY_TAGS = 2
VALID_CATEGORY_TAGS = ("prakerja", "spl")
MIN_PRICE = Decimal("0")
MAX_PRICE = Decimal("99999999.99")
MIN_RATING = Decimal("1.0")
MAX_RATING = Decimal("5.0")
FREE_COURSE_MAX_RATING = Decimal("3.0")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: Optional[str] = None
    field: Optional[str] = None


VALID = ValidationResult(valid=True)


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a decimal string/number; None when it is not a finite number."""
    if value is None:
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def validate_course_name(name: Optional[str]) -> ValidationResult:
    if not name or not name.strip():
        return ValidationResult(False, "Course name is required", "name")

    if len(name) > MAX_NAME_LENGTH:
        return ValidationResult(
            False, f"Course name cannot exceed {MAX_NAME_LENGTH} characters", "name"
        )

    return VALID


def validate_course_price(price: Any) -> ValidationResult:
    numeric_price = parse_decimal(price)

    if numeric_price is None:
        return ValidationResult(False, "Price must be a valid number", "price")

    if numeric_price < MIN_PRICE:
        return ValidationResult(False, "Price cannot be negative", "price")

    if numeric_price > MAX_PRICE:
        return ValidationResult(False, f"Price cannot exceed {MAX_PRICE}", "price")

    return VALID


def validate_category_tags(category_tags: Optional[list[str]]) -> ValidationResult:
    """Non-empty, at most two tags, every tag on the (case-sensitive) whitelist."""
    if not category_tags:
        return ValidationResult(
            False, "At least one category tag is required", "categoryTag"
        )

    if len(category_tags) > MAX_CATEGORY_TAGS:
        return ValidationResult(
            False, f"Maximum {MAX_CATEGORY_TAGS} category tags allowed", "categoryTag"
        )

    invalid_tags = [tag for tag in category_tags if tag not in VALID_CATEGORY_TAGS]
    if invalid_tags:
        return ValidationResult(
            False,
            f"Invalid category tags: {', '.join(invalid_tags)}. "
            f"Valid tags: {', '.join(VALID_CATEGORY_TAGS)}",
            "categoryTag",
        )

    return VALID


def validate_course_rating(rating: Any, price: Any = None) -> ValidationResult:
    """Rating is optional; when present it must lie in [1.0, 5.0].

    If the price is known and exactly zero the rating may not exceed 3.0.
    """
    if rating is None or rating == "":
        return VALID

    numeric_rating = parse_decimal(rating)
    if numeric_rating is None:
        return ValidationResult(False, "Rating must be a valid number", "rating")

    if numeric_rating < MIN_RATING or numeric_rating > MAX_RATING:
        return ValidationResult(
            False, f"Rating must be between {MIN_RATING} and {MAX_RATING}", "rating"
        )

    numeric_price = parse_decimal(price)
    if (
        numeric_price is not None
        and numeric_price == 0
        and numeric_rating > FREE_COURSE_MAX_RATING
    ):
        return ValidationResult(
            False, "Free courses cannot have ratings above 3.0", "rating"
        )

    return VALID


def validate_thumbnail_url(thumbnail: Optional[str]) -> ValidationResult:
    if not thumbnail:
        return VALID

    if not is_valid_url(thumbnail):
        return ValidationResult(False, "Thumbnail must be a valid URL", "thumbnail")

    return VALID


def validate_complete_course(
    data: Union[CourseRules, dict[str, Any]],
) -> list[ValidationResult]:
    """Run every applicable rule over the fields present in ``data``.

    Failures come back in a fixed order (name, price, categoryTag, rating,
    thumbnail); callers report the first one.
    """
    if isinstance(data, dict):
        data = CourseRules(**data)

    results: list[ValidationResult] = []

    if data.is_present("name"):
        results.append(validate_course_name(data.name))

    if data.is_present("price"):
        results.append(validate_course_price(data.price))

    if data.is_present("category_tag"):
        results.append(validate_category_tags(data.category_tag))

    if data.is_present("rating"):
        price = data.price if data.is_present("price") else None
        results.append(validate_course_rating(data.rating, price))

    if data.is_present("thumbnail"):
        results.append(validate_thumbnail_url(data.thumbnail))

    return [result for result in results if not result.valid]


def can_course_be_updated(course: Any) -> bool:
    # No state machine restricts updates yet
    return True


def can_course_be_deleted(course: Any, enrollment_count: int) -> bool:
    return enrollment_count == 0


def get_course_display_information(course: Any) -> dict[str, Any]:
    """Labels for course cards and lists."""
    price = parse_decimal(course.price) or Decimal("0")
    rating = parse_decimal(course.rating)

    if price == 0:
        price_display = "Free"
    else:
        price_display = f"Rp {price.normalize():,f}"

    return {
        "price_display": price_display,
        "category_display": ", ".join(course.category_tag or []),
        "rating_display": f"{rating:.1f}/5" if rating is not None else "Not rated",
        "has_thumbnail": bool(course.thumbnail),
        "created_by_display": "Created by user" if course.created_by else "Anonymous",
    }
