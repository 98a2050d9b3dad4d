"""
FastAPI main application entry point
"""

from fastapi import FastAPI, Request, status, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from typing import Optional
import time
import uuid
import asyncio

from learning_profile.config import settings
from learning_profile.services.data_source import DataSource, create_data_source
from learning_profile.utils.logger import logger
from learning_profile.utils.error_handler import (
    global_exception_handler,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    AppException
)
from learning_profile.routes import auth, profiles, share, teacher


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    data_source: DataSource = app.state.data_source

    async def cleanup_loop():
        while True:
            await asyncio.sleep(300)  # Run every 5 minutes
            await data_source.cleanup()

    cleanup_task = asyncio.create_task(cleanup_loop())
    logger.info(f"{settings.PROJECT_NAME} started with {data_source.name} data source")

    try:
        yield
    finally:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass


def create_app(data_source: Optional[DataSource] = None) -> FastAPI:
    """
    Build the application

    Args:
        data_source: Storage to use (defaults to the one selected by DATA_SOURCE)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="""
        Begin Learning Profile API

        Progressive learning profiles built from parent and teacher assessments.

        Features:
        - Weighted consolidation of multiple assessments per child
        - Confidence and completeness metrics
        - Parent, teacher and consolidated profile views
        - Classroom overview and at-risk analysis
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.data_source = data_source or create_data_source()

    # Wildcard origins cannot be combined with credentials
    cors_origins = settings.cors_origins_list or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_and_timing_middleware(request: Request, call_next):
        """Add request ID and track processing time"""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"

        # Log only failures
        if response.status_code >= 400:
            logger.error(
                f"{request.method} {request.url.path} - {response.status_code}",
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "duration_ms": round(process_time, 2)
                }
            )

        return response

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/health", tags=["Health"])
    def health_check(request: Request):
        """
        Health check endpoint with data source status

        Returns:
            Health status and system information
        """
        try:
            source_status = request.app.state.data_source.health()
        except Exception as e:
            logger.error(f"Health check failed: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "status": "unhealthy",
                    "error": str(e) if settings.DEBUG else "Service check failed"
                }
            )

        return {
            "status": "healthy",
            "version": settings.VERSION,
            "service": settings.PROJECT_NAME,
            "checks": {"data_source": source_status},
            "timestamp": time.time()
        }

    app.include_router(profiles.router)
    app.include_router(teacher.router)
    app.include_router(share.router)
    app.include_router(auth.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "learning_profile.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
