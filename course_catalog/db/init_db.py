"""Database initialization utilities for the course catalog."""

from course_catalog.db.base import Base
from course_catalog.db.session import engine
from course_catalog.core.logging import configure_logging, get_logger

# Registers every table on Base.metadata
import course_catalog.models  # noqa: F401

logger = get_logger(__name__)


def create_database():
    """Create all database tables."""
    logger.info("Creating course catalog tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Course catalog tables created successfully")


def drop_database():
    """Drop all database tables."""
    logger.info("Dropping course catalog tables...")
    Base.metadata.drop_all(bind=engine)
    logger.info("Course catalog tables dropped successfully")


if __name__ == "__main__":
    configure_logging()
    create_database()
