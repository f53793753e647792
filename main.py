"""
Student Dashboard Backend API Server

FastAPI application serving course catalog, enrollment, student dashboard
and administration endpoints.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from datetime import datetime, timezone
import time

from student_dashboard import __version__, config
from student_dashboard.api.routes import admin, auth, courses, students
from student_dashboard.database import init_models
from student_dashboard.errors import DashboardError, ServerFaultError
from student_dashboard.scripts.load_demo import seed_if_empty

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Ensures tables exist and, in demo mode, seeds the demo records.
    """
    # Startup
    logger.info("Starting Student Dashboard API server...")
    await init_models()

    if config.DEMO_MODE:
        if await seed_if_empty():
            logger.info("Demo mode: demo users and courses loaded")

    yield

    # Shutdown
    logger.info("Shutting down Student Dashboard API server...")


# Create FastAPI application
app = FastAPI(
    title="Student Dashboard API",
    description="Course catalog, enrollment and student dashboard backend",
    version=__version__,
    lifespan=lifespan,
    debug=config.DEBUG,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing"""
    start_time = time.time()

    # Process request
    response = await call_next(request)

    # Calculate duration
    duration_ms = (time.time() - start_time) * 1000

    # Log request
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration_ms:.2f}ms"
    )

    return response


def _error_response(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    content = {"success": False, "code": code, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


# Domain error handler
@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    """Map domain errors to their status and code"""
    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Authentication failures and routing errors in the common envelope"""
    if isinstance(exc.detail, dict):
        code = exc.detail.get("code", "HTTP_ERROR")
        message = exc.detail.get("message", "")
    else:
        code = "NOT_FOUND" if exc.status_code == status.HTTP_404_NOT_FOUND else "HTTP_ERROR"
        message = str(exc.detail)

    response = _error_response(exc.status_code, code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


# Validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        errors=exc.errors(),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Store faults are reported, never masked"""
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return await dashboard_error_handler(request, ServerFaultError("Server error"))


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "SERVER_ERROR",
        str(exc) if app.debug else "Server error",
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
@app.get("/api/health", tags=["Health"], include_in_schema=False)
async def health_check():
    """
    Health check endpoint.

    Returns server status and version information.
    """
    return {
        "success": True,
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "demo_mode": config.DEMO_MODE,
        "service": "student-dashboard-api"
    }


# Include routers
app.include_router(auth.router)
app.include_router(courses.router)
app.include_router(students.router)
app.include_router(admin.router)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """API root endpoint"""
    return {
        "success": True,
        "name": "Student Dashboard API",
        "version": __version__,
        "docs": "/api/docs",
        "health": "/health",
        "endpoints": {
            "auth": "/api/auth",
            "courses": "/api/courses",
            "students": "/api/students",
            "admin": "/api/admin",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower()
    )
