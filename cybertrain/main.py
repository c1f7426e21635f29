"""
Cybercrime Investigation Training Platform

FastAPI application entry point.
"""

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Dict, Type

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cybertrain.api.middleware.request_context import RequestContextMiddleware
from cybertrain.api.v1 import router as api_v1_router
from cybertrain.config import Settings, get_settings
from cybertrain.engines.modules.management import ModuleManagementService
from cybertrain.engines.timer.registry import ChallengeRegistry
from cybertrain.kernel.errors import (
    ActivityDependencyError,
    ContentValidationError,
    InvalidTransitionError,
    ModuleDependencyError,
    ModuleValidationError,
    TrainingPlatformError,
    UnknownActivityError,
    UnknownChallengeError,
    UnknownModuleError,
)
from cybertrain.kernel.progress.store import InMemoryProgressStore
from cybertrain.logging_config import configure_logging, get_logger
from cybertrain.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)

_ERROR_STATUS: Dict[Type[TrainingPlatformError], int] = {
    UnknownModuleError: status.HTTP_404_NOT_FOUND,
    UnknownActivityError: status.HTTP_404_NOT_FOUND,
    UnknownChallengeError: status.HTTP_404_NOT_FOUND,
    ModuleValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ContentValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ModuleDependencyError: status.HTTP_409_CONFLICT,
    ActivityDependencyError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
}


def init_state(app: FastAPI, settings: Settings) -> None:
    """Build the services the routes depend on and hang them on app.state."""
    app.state.catalog = ModuleManagementService.from_settings(settings)
    app.state.progress_store = InMemoryProgressStore()
    app.state.challenges = ChallengeRegistry(settings)


def load_catalog(catalog: ModuleManagementService, path: str) -> bool:
    """Import a catalog export from a JSON file."""
    catalog_file = Path(path)
    if not catalog_file.exists():
        logger.warning("Catalog file not found", extra={"path": path})
        return False
    with catalog_file.open(encoding="utf-8") as f:
        data = json.load(f)
    return catalog.import_data(data)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    init_state(app, settings)
    if settings.catalog_path:
        loaded = load_catalog(app.state.catalog, settings.catalog_path)
        logger.info("Catalog load finished", extra={"path": settings.catalog_path, "status": loaded})

    yield

    logger.info("Shutting down...")
    app.state.challenges.close_all()


app = FastAPI(
    title=settings.project_name,
    description="""
    Cybercrime Investigation Training Platform

    Scenario-driven training modules for law-enforcement cybercrime investigation.

    ## Features

    - **Modules**: Author modules and activities with validated content
    - **Sequencing**: Prerequisite graph, availability and learning paths
    - **Learners**: Progress reporting and gated module access
    - **Timed Challenges**: Countdown, time pressure and scored results
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Middleware order: LAST added = OUTERMOST, so CORS wraps everything
_cors_origins = list(settings.cors_origins)

app.add_middleware(RequestContextMiddleware, slow_request_ms=settings.slow_request_ms)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _cors_headers(request: Request) -> dict:
    """CORS headers for error responses (500s often bypass CORS middleware)."""
    origin = request.headers.get("origin") or ""
    allow_origin = origin if origin in _cors_origins else (_cors_origins[0] if _cors_origins else "*")
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "*",
        "Access-Control-Allow-Headers": "*",
    }


def _error_headers(request: Request) -> dict:
    headers = _cors_headers(request)
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
    return headers


@app.exception_handler(TrainingPlatformError)
async def domain_exception_handler(request: Request, exc: TrainingPlatformError):
    """Map domain errors onto 404/409/422."""
    status_code = next(
        (code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    content: dict = {"detail": str(exc)}
    errors = getattr(exc, "errors", None)
    if errors:
        content["errors"] = errors
    dependents = getattr(exc, "dependents", None)
    if dependents:
        content["dependents"] = dependents
    logger.info(
        "Domain error",
        extra={"error_type": type(exc).__name__, "status": status_code, "path": request.url.path},
    )
    return JSONResponse(status_code=status_code, content=content, headers=_error_headers(request))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Ensure 401/404 etc. responses have CORS headers."""
    content = {"detail": exc.detail}
    req_id = getattr(request.state, "request_id", None)
    if req_id and exc.status_code >= 500:
        content["request_id"] = req_id
    return JSONResponse(status_code=exc.status_code, content=content, headers=_error_headers(request))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    content = {"detail": "Validation error", "errors": errors}
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        content["request_id"] = req_id
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=content,
        headers=_error_headers(request),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__, "request_id": req_id}
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_error_headers(request),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Check application health."""
    catalog = getattr(request.app.state, "catalog", None)
    challenges = getattr(request.app.state, "challenges", None)
    return HealthResponse(
        status="ok",
        version=settings.version,
        modules_loaded=len(catalog.get_modules()) if catalog is not None else 0,
        active_challenges=len(challenges) if challenges is not None else 0,
    )


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": settings.api_v1_prefix,
        },
    }


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cybertrain.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
