import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from alembic.config import Config
from alembic import command
from app.core.config import settings
from app.core.errors import ProjectNotFound
from app.core.logging import configure_logging
from app.api.routes import router as api_router
from app.db.session import engine

configure_logging(settings.log_level)
log = logging.getLogger(__name__)


def wait_for_database(max_retries: int = 30, retry_delay: float = 1.0) -> None:
    """Wait for the database to be available."""
    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            log.info("Database connection successful", extra={"project_id": "-", "component": "-"})
            return
        except Exception as e:
            if attempt < max_retries - 1:
                log.warning("Database not ready, retrying in %s seconds (attempt %d/%d): %s",
                            retry_delay, attempt + 1, max_retries, e,
                            extra={"project_id": "-", "component": "-"})
                time.sleep(retry_delay)
            else:
                log.error("Database connection failed after %d attempts", max_retries,
                          extra={"project_id": "-", "component": "-"})
                raise


def run_migrations() -> None:
    """Run Alembic migrations to head."""
    try:
        log.info("Running database migrations...", extra={"project_id": "-", "component": "-"})
        alembic_cfg = Config("alembic.ini")
        command.upgrade(alembic_cfg, "head")
        log.info("Database migrations completed successfully", extra={"project_id": "-", "component": "-"})
    except Exception as e:
        log.error("Database migration failed: %s", e, exc_info=True, extra={"project_id": "-", "component": "-"})
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    log.info("Starting API server...", extra={"project_id": "-", "component": "-"})
    try:
        wait_for_database()
        run_migrations()
        log.info("API server startup complete", extra={"project_id": "-", "component": "-"})
    except Exception as e:
        log.error("API startup failed: %s", e, exc_info=True, extra={"project_id": "-", "component": "-"})
        raise
    yield
    # Shutdown
    log.info("Shutting down API server...", extra={"project_id": "-", "component": "-"})


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    lifespan=lifespan
)
app.include_router(api_router, prefix="/v1")


@app.exception_handler(ProjectNotFound)
async def project_not_found_handler(request: Request, exc: ProjectNotFound):
    log.info("Project not found", extra={"project_id": exc.project_id, "component": "-"})
    return JSONResponse(status_code=404, content={"error": "Project not found"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc,
              extra={"project_id": "-", "component": "-"})
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port)
