"""
FastAPI application main module.
Wires middleware, error handling, the lifecycle scheduler and the v1 API.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session
import time
import uuid
from contextlib import asynccontextmanager
from adslot.api.v1 import api_router
from adslot.config import (
    ADMIN_BOOTSTRAP_API_KEY,
    ADMIN_BOOTSTRAP_EMAIL,
    CORS_ORIGINS,
    LIFECYCLE_SETTINGS,
    LOG_FILE,
    LOG_LEVEL,
)
from adslot.database import Base, engine
from adslot import database
from adslot.errors import AdSlotError
from adslot.jobs.lifecycle_jobs import LAST_FAILURES
from adslot.jobs.scheduler import LifecycleScheduler
from adslot.models.db import User
from adslot.models.db.enums import UserRole
from adslot.services.slot_catalog import seed_default_slots
from adslot.utils import setup_logging, get_logger

# Setup logging before creating the app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE, enable_console=True)

logger = get_logger(__name__)

SERVICE_NAME = "adslot-booking"
SERVICE_VERSION = "1.0.0"


def ensure_bootstrap_admin(session: Session) -> None:
    """Create the configured admin account if it does not exist yet."""
    if not (ADMIN_BOOTSTRAP_EMAIL and ADMIN_BOOTSTRAP_API_KEY):
        return
    if session.query(User).filter(User.email == ADMIN_BOOTSTRAP_EMAIL).first():
        return
    session.add(User(
        full_name="Administrator",
        email=ADMIN_BOOTSTRAP_EMAIL,
        api_key=ADMIN_BOOTSTRAP_API_KEY,
        role=UserRole.ADMIN,
    ))
    session.commit()
    logger.info("Bootstrap admin created", email=ADMIN_BOOTSTRAP_EMAIL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates tables, seeds the slot grid and owns the lifecycle scheduler.
    """
    logger.info("Application startup initiated")
    scheduler: LifecycleScheduler | None = None
    try:
        Base.metadata.create_all(bind=engine)
        with database.SessionLocal() as session:
            seed_default_slots(session)
            ensure_bootstrap_admin(session)

        if LIFECYCLE_SETTINGS.get("enable_scheduler"):
            scheduler = LifecycleScheduler()
            scheduler.start()
        else:
            logger.info("Lifecycle scheduler disabled; use POST /api/v1/adverts/manual-update")
        app.state.scheduler = scheduler
        logger.info("Application startup completed successfully")
        yield
    except Exception as e:  # pragma: no cover
        logger.error("Application startup failed", error=str(e), exc_info=True)
        raise
    finally:
        logger.info("Application shutdown initiated")
        if scheduler is not None:
            scheduler.stop()
        logger.info("Application shutdown completed")

app = FastAPI(
    title="Advert Slot Booking",
    description="""
    Booking core for broadcast advert slots.

    ## Features
    * **Slot grid** - hourly slots, two adverts per slot per day
    * **Availability checks** - capacity and same-category conflicts per day
    * **Approval & extension** - atomic multi-day reservations
    * **Lifecycle sweep** - daily remaining-days recomputation and expiry

    ## Authentication
    ```
    Authorization: Bearer <api key>
    ```
    """,
    version=SERVICE_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

@app.middleware("http")
async def add_request_context_and_logging(request: Request, call_next):
    """
    Attach a request ID, time the request and log start/finish.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    request.state.start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        path=request.url.path,
        remote_addr=request.client.host if request.client else "unknown",
        request_id=request_id
    )

    response = await call_next(request)

    process_time_ms = round((time.time() - request.state.start_time) * 1000, 2)
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(process_time_ms)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"

    logger.info(
        "Request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        process_time_ms=process_time_ms,
        request_id=request_id
    )

    return response

@app.exception_handler(AdSlotError)
async def domain_exception_handler(request: Request, exc: AdSlotError):
    """Map domain errors (not found, invalid state, conflict ...) to JSON."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        "Domain error",
        error=exc.error_code,
        status_code=exc.status_code,
        detail=exc.message,
        request_id=request_id,
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({"success": False, **exc.to_dict(), "request_id": request_id})
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        "Request validation failed",
        errors=exc.errors(),
        request_id=request_id,
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=422,
        content=jsonable_encoder({
            "success": False,
            "error": "request_validation_error",
            "message": "Request validation failed",
            "details": exc.errors(),
            "request_id": request_id
        })
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail,
            "request_id": request_id
        },
        headers=getattr(exc, "headers", None)
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=request_id,
        path=request.url.path,
        method=request.method,
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "request_id": request_id
        }
    )

@app.get("/health", tags=["health"], summary="Basic health check")
async def health_check():
    """Basic health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": time.time(),
    }

@app.get("/health/detailed", tags=["health"], summary="Detailed health check")
async def detailed_health_check():
    """Database reachability plus scheduler state and recent job failures."""
    health_status = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": time.time(),
        "checks": {}
    }

    try:
        with database.SessionLocal() as db:
            db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "healthy"
    except Exception as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"

    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is None:
        health_status["checks"]["scheduler"] = "disabled"
    else:
        health_status["checks"]["scheduler"] = {
            "running": scheduler.running,
            "jobs": scheduler.jobs(),
        }
    if LAST_FAILURES:
        health_status["checks"]["job_failures"] = dict(LAST_FAILURES)
        health_status["status"] = "degraded"

    return health_status

@app.get("/", tags=["root"])
async def root():
    """API root endpoint with basic information."""
    return {
        "message": "Advert Slot Booking API",
        "version": SERVICE_VERSION,
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": "/api/v1"
    }

app.include_router(api_router, prefix="/api/v1")

if __name__ == "__main__":
    import uvicorn

    logger.info("Starting development server")

    uvicorn.run(
        "adslot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["adslot"],
        log_level="info",
        access_log=True
    )
