from course_catalog.core.env import load_env
load_env()
# Initialize structured logging early
from course_catalog.core.config import settings
from course_catalog.core.logging import configure_logging
configure_logging(settings.LOG_LEVEL)

import time
import datetime

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from course_catalog.core.errors import DomainError
from course_catalog.core.logging import get_logger
from course_catalog.db.deps import get_db
from course_catalog.middleware.logging import request_logging_middleware

# Import routers from modules
from course_catalog.modules.courses.routes import router as courses_router
from course_catalog.modules.enrollments.routes import router as enrollments_router
import course_catalog.models  # noqa: F401  registers every mapper

logger = get_logger(__name__)

app = FastAPI(title=settings.APP_NAME)
app.middleware("http")(request_logging_middleware)

# Record process start time for uptime reporting
_START_TIME = time.time()


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.info(
        "domain error",
        path=request.url.path,
        domain=exc.domain,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(
                str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")
            ),
            "reason": error.get("msg", "Invalid value"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    first = errors[0] if errors else {"field": "", "reason": "Invalid request"}
    logger.info("request validation failed", path=request.url.path, errors=errors)
    return JSONResponse(
        status_code=422,
        content={
            "code": "VALIDATION_FAILED",
            "message": "Request validation failed",
            "data": {"field": first["field"], "reason": first["reason"]},
            "errors": errors,
        },
    )


# Create main API router
api_router = APIRouter()
api_router.include_router(courses_router)
api_router.include_router(enrollments_router)

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/health")
async def health():
    """Simple health endpoint returning status, uptime, and timestamp."""
    uptime = time.time() - _START_TIME
    payload = {
        "status": "ok",
        "uptime_seconds": round(uptime, 2),
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }
    return JSONResponse(content=payload)


@app.get("/db/health")
def db_health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"db": "ok"}


logger.info("fastapi process started", app=settings.APP_NAME)
