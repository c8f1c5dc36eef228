"""
Main FastAPI application.
- Preflight database test on startup
- Domain errors translated into the response envelope
"""
from fastapi import FastAPI, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from contextlib import asynccontextmanager
import logging

from app.config import settings
from app.database import engine, get_db, test_connection
from app.exceptions import InventoryError
from app import models
from app.routers import auth_router, inventory_router, categories_router, activity_router
from app.schemas.common import ApiResponse

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 Starting {settings.APP_NAME}")

    logger.info("Running preflight database test...")
    success, message = test_connection()
    if not success:
        logger.error(f"Preflight test failed: {message}")
    else:
        logger.info(f"Preflight test passed: {message}")

    models.Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables verified")

    yield

    # Shutdown
    logger.info(f"👋 Shutting down {settings.APP_NAME}")

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Inventory tracking - items, stock movements and audit trail",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error handlers
@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    """Business and auth failures become a failure envelope"""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse.fail(exc.message).model_dump(mode="json"),
        headers=headers,
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ApiResponse.fail(f"Invalid request: {errors}").model_dump(mode="json"),
    )

# Include routers
app.include_router(auth_router)
app.include_router(inventory_router)
app.include_router(categories_router)
app.include_router(activity_router)

@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    System health check.
    Shows DB status, fails gracefully if the database is unavailable.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)}"
        logger.warning(f"Health check database error: {e}")

    return {
        "status": "healthy",
        "service": "stockroom-api",
        "database": db_status,
        "version": settings.APP_VERSION,
    }

@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "endpoints": {
            "docs": "/api/docs",
            "health": "/health",
            "auth": "/auth/login",
            "items": "/items"
        }
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
