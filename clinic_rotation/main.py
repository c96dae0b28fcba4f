from contextlib import asynccontextmanager
from datetime import timedelta
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
import time
import logging
import os

from .api.v1.assignments import router as assignments_router
from .api.v1.queue import router as queue_router
from .core.config import settings
from .core.database import init_db
from .core.exceptions import RotationError
from .services.monitor import ConsecutiveAssignmentMonitor

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables before serving; the rotation record itself is created lazily."""
    db_url = settings.get_database_url
    backend = "PostgreSQL" if "postgresql" in db_url else "SQLite" if "sqlite" in db_url else "Unknown"
    logger.info(f"Starting {settings.APP_NAME} on {backend}")
    
    try:
        init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise
    
    yield
    
    logger.info(f"Shutting down {settings.APP_NAME}")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Fair daily rotation of clinicians for front-desk patient intake",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan
)

# Rotation-sourced assignments seen by this process only
app.state.assignment_monitor = ConsecutiveAssignmentMonitor(
    window_size=settings.CONSECUTIVE_WINDOW_SIZE,
    threshold=timedelta(minutes=settings.CONSECUTIVE_THRESHOLD_MINUTES)
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if not os.getenv("TESTING"):
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["localhost", "127.0.0.1", "*.localhost"]
    )

@app.middleware("http")
async def log_request_timing(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    elapsed = time.time() - start_time
    response.headers["X-Process-Time"] = str(elapsed)
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - Time: {elapsed:.4f}s"
    )
    return response

@app.exception_handler(RotationError)
async def rotation_error_handler(request: Request, exc: RotationError):
    """Scheduler failures carry their own status code and reach the operator as-is."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": type(exc).__name__, "message": exc.message}
    )

@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": getattr(exc, "detail", None) or "Not Found",
            "path": str(request.url.path)
        }
    )

app.include_router(queue_router, prefix="/api/v1")
app.include_router(assignments_router, prefix="/api/v1")

@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.VERSION}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "clinic_rotation.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
