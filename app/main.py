"""
Area Watch - FastAPI Application Entry Point

Anonymous reporting of enforcement sightings, with human verification
before anything is published on the map.

DESIGN PRINCIPLES:
- Reporters stay anonymous: client addresses are only stored as salted hashes
- Nothing is published without a verifier decision
- Abuse controls (quota, moderation, geocoding) run before anything is stored
- Stats are a cache; the maintenance jobs can always rebuild them
"""

import logging
import sys
import traceback
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.settings import settings
from app.config.firebase import initialize_firebase
from app.routes import health, maintenance, reports, stats, verifiers
from app.services.errors import InfrastructureError, ServiceError


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Intake and verification pipeline for anonymous enforcement-sighting reports",
    debug=settings.DEBUG
)


# Service errors carry their own status and user-presentable message
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if isinstance(exc, InfrastructureError):
        logger.error(
            f"❌ {request.method} {request.url.path} failed: {exc.message}",
            exc_info=exc.cause or exc,
        )
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.public_message, "code": exc.code}
    )


# Global exception handler to catch ALL other exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    sys.stderr.write("=" * 80 + "\n")
    sys.stderr.write("🔥 GLOBAL EXCEPTION HANDLER CAUGHT EXCEPTION\n")
    sys.stderr.write(f"Path: {request.url.path}\n")
    sys.stderr.write(f"Method: {request.method}\n")
    sys.stderr.write("=" * 80 + "\n")
    sys.stderr.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    sys.stderr.write("=" * 80 + "\n")
    sys.stderr.flush()

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "internal"}
    )


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log request body validation errors and return them to the caller."""
    logger.info(f"{request.method} {request.url.path} validation errors: {exc.errors()}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()}
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize Firebase on application startup.
    """
    print(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        initialize_firebase()
    except Exception as e:
        print(f"Warning: Firebase initialization failed: {e}")
        print("   The app will start but store operations will fail.")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup on application shutdown.
    """
    print(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(reports.router)
app.include_router(verifiers.router)
app.include_router(stats.router)
app.include_router(maintenance.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "stats": "/stats"
    }
