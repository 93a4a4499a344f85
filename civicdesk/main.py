"""
CivicDesk - FastAPI Application Entry Point

Citizen issue reporting backend: citizens submit geotagged tickets, upvote
issues near them and poll their notifications; authorities triage and
resolve tickets and read ward heatmaps.

DESIGN PRINCIPLES:
- The key-value store is the single source of truth; services keep no state
- Every error response is {"error": kind, "message": text}
- Notifications are best-effort side effects and never fail a ticket operation
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from civicdesk.core.errors import CivicDeskError
from civicdesk.core.settings import settings
from civicdesk.config.firebase import initialize_store
from civicdesk.routes import auth, health, locations, notifications, profile, tickets, uploads

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Citizen issue reporting: tickets, upvotes, notifications and ward heatmaps",
    debug=settings.DEBUG
)


@app.exception_handler(CivicDeskError)
async def civicdesk_error_handler(request: Request, exc: CivicDeskError):
    """Domain errors carry their own status code and kind."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters are reported like any other validation failure."""
    errors = exc.errors()
    logger.info(f"{request.method} {request.url.path} -> 400 validation: {errors}")
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", []) if part not in ("body", "query"))
    message = f"{field}: {first.get('msg')}" if field else (first.get("msg") or "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "validation", "message": message}
    )


# Global exception handler to catch ALL other exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log with full traceback; the client only learns that something failed."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal", "message": "Internal server error"}
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize the key-value store on application startup.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    try:
        initialize_store()
    except Exception as e:
        logger.warning(f"Store initialization failed: {e}")
        logger.warning("The app will start but database operations may fail.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(tickets.router)
app.include_router(notifications.router)
app.include_router(profile.router)
app.include_router(uploads.router)
app.include_router(locations.router)


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
    }
