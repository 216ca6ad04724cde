# course_catalog/models/__init__.py

from course_catalog.modules.auth.models import User
from course_catalog.modules.courses.models import Course
from course_catalog.modules.enrollments.models import Enrollment

__all__ = [
    "User",
    "Course",
    "Enrollment",
]
