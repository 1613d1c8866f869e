import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .container import Services, build_services
from .errors import TaskTrackerError, Unauthenticated
from .logging_setup import setup_logging
from .routers import auth as auth_router
from .routers import tasks as tasks_router

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Account registration and login."},
    {
        "name": "tasks",
        "description": "Owner-scoped CRUD for tasks with status filtering and pagination.",
    },
]


# PUBLIC_INTERFACE
def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the FastAPI application around a set of wired services.

    When no services are given they are built from environment settings.
    """
    services = services or build_services()
    settings = services.settings
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Task Tracker Backend",
        description="Multi-tenant task tracking API: accounts, sessions and personal tasks.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.services = services

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TaskTrackerError)
    async def domain_exception_handler(request: Request, exc: TaskTrackerError) -> JSONResponse:
        """
        Map domain errors to a stable JSON body.

        Response format:
            {"error": "<kind>", "message": "<human readable>"}
        """
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.kind, "message": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationFailure",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return JSONResponse(
            status_code=400,
            content={
                "error": "ValidationFailure",
                "message": "Request validation failed",
                "detail": _jsonable_errors(exc),
            },
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(auth_router.router)
    app.include_router(tasks_router.router)

    logger.info("Task tracker app created backend=%s", settings.persistence_backend)
    return app


def _jsonable_errors(exc: RequestValidationError) -> list:
    """Validation error details with any non-JSON context (e.g. exceptions) stringified."""
    return jsonable_encoder(exc.errors(), custom_encoder={Exception: str})


app = create_app()
