import socket
from contextlib import asynccontextmanager
from typing import Final

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .application.persistence_service import load_store
from .config import settings
from .domain.exceptions import DomainError
from .infrastructure.database.database import get_main_engine
from .infrastructure.database.persistence import SqlStatePersistence
from .logging_config import get_logger, setup_logging
from .logging_utils import log_system_info
from .middleware import log_requests_middleware
from .presentation.api_routes import api_router
from .presentation.error_handlers import handle_domain_error
from .presentation.problem_details import ProblemDetailFactory


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger = get_logger(__name__)

    # One store per process; all commands run on the event loop thread
    persistence = SqlStatePersistence(get_main_engine())
    app.state.persistence = persistence
    app.state.store = load_store(persistence, settings)

    log_system_info(socket.gethostname(), settings.debug, len(app.state.store.cities))

    yield

    logger.info("Application shutdown completed")


app: Final = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
    description="""
**Traveled World** - keep track of the cities you have visited or lived in and
the trips that connect them.

## Core Features

- **Cities** with duplicate prevention: two cities closer than 0.01 degrees in
  both latitude and longitude are treated as the same place
- **Trips** as ordered itineraries over your cities; deleting a city removes
  it from every trip
- **Undo/redo** over the last 50 changes to cities and trips
- **Import/export** of a versioned JSON document
    """.strip(),
    openapi_tags=[
        {"name": "cities", "description": "Visited and lived-in cities"},
        {"name": "trips", "description": "Multi-city itineraries"},
        {"name": "preferences", "description": "View preferences (not undoable)"},
        {"name": "history", "description": "Undo and redo"},
        {"name": "transfer", "description": "Import and export"},
        {"name": "summary", "description": "Activity overview"},
    ],
)

app.middleware("http")(log_requests_middleware)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Global handler for domain-specific errors."""
    logger = get_logger(__name__)
    logger.warning(
        "Domain error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
    )
    return handle_domain_error(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Global handler for Pydantic validation errors."""
    logger = get_logger(__name__)
    logger.warning(
        "Request validation error occurred",
        errors=exc.errors(),
        path=request.url.path,
        method=request.method,
    )

    field_errors = []
    for error in exc.errors():
        field_name = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        field_errors.append(
            {
                "field": field_name or "unknown",
                "code": error["type"],
                "message": error["msg"],
            }
        )

    problem = ProblemDetailFactory.validation_failed(
        detail="Request validation failed",
        instance=str(request.url.path),
        field_errors=field_errors,
    )
    return JSONResponse(status_code=problem.status, content=problem.to_content())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Global handler for unexpected errors."""
    logger = get_logger(__name__)
    logger.error(
        "Unexpected error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    problem = ProblemDetailFactory.internal_server_error(
        detail="An unexpected error occurred. Please try again.",
        instance=str(request.url.path),
    )
    return JSONResponse(status_code=problem.status, content=problem.to_content())


@app.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(api_router)


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(
        "traveled_world.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
