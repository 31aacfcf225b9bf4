"""
FastAPI application entry point.

create_app() composes the application: middleware, the error fragment
handlers, the two top-level pages and every controller under its path
prefix. Server wires configuration, repository and listener together.
"""

from contextlib import asynccontextmanager
from types import MappingProxyType
from typing import AsyncGenerator, Mapping, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from crud import __version__
from crud.api import users
from crud.api.htmx import crud_error_handler, validation_error_handler
from crud.core.config import Settings
from crud.core.exceptions import CrudError
from crud.core.logging_config import get_logger
from crud.middleware.logging import LoggingMiddleware
from crud.middleware.request_id import RequestIDMiddleware
from crud.repositories import UserRepository, create_repository


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Startup:
        - Create the user table if missing; a failure aborts startup

    Shutdown:
        - Close the repository's connections
    """
    repository: UserRepository = app.state.repository

    try:
        await repository.migrate()
    except CrudError:
        logger.critical(
            "Repository migration failed, aborting startup",
            extra={"driver": repository.driver},
            exc_info=True,
        )
        raise

    logger.info(
        "Application started",
        extra={"driver": repository.driver, "prefixes": list(app.state.controllers)},
    )

    yield

    await repository.close()


def create_app(
    repository: UserRepository,
    settings: Optional[Settings] = None,
    controllers: Optional[Mapping[str, APIRouter]] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    The prefix -> controller mapping is frozen before any route is
    registered and cannot change afterwards.

    Args:
        repository: Storage for the user controller
        settings: Application settings (defaults to environment settings)
        controllers: Path prefix -> router mapping; defaults to the user
            controller under settings.mount_prefix

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = Settings()
    if controllers is None:
        controllers = {settings.mount_prefix: users.router}

    frozen_controllers = MappingProxyType(dict(controllers))

    app = FastAPI(
        title="User CRUD",
        version=__version__,
        description="Server-rendered user CRUD with htmx fragments",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.repository = repository
    templates = Jinja2Templates(directory=settings.templates_directory)
    templates.env.globals["prefix"] = settings.mount_prefix
    app.state.templates = templates
    app.state.controllers = frozen_controllers

    # Last registered runs first: RequestID sets the ID LoggingMiddleware reads
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(CrudError, crud_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index(request: Request) -> HTMLResponse:
        return app.state.templates.TemplateResponse(
            request=request,
            name="index.html",
            context={},
        )

    @app.get("/empty", include_in_schema=False)
    async def empty() -> Response:
        return Response(content="", media_type="text/html")

    for prefix, router in frozen_controllers.items():
        app.include_router(router, prefix=prefix)

    return app


class Server:
    """
    Owns the repository, the application and the HTTP listener.

    Args:
        settings: Application settings

    Raises:
        ConfigurationError: If the configured driver cannot be constructed
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.repository = create_repository(settings.driver, settings.conn)
        self.app = create_app(self.repository, settings)

    def run(self) -> None:
        logger.info(
            "Starting server",
            extra={
                "host": self.settings.host,
                "port": self.settings.port,
                "driver": self.repository.driver,
                "mount_prefix": self.settings.mount_prefix,
            },
        )
        uvicorn.run(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_config=None,
        )
