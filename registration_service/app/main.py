"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from registration_service.app.exception_handlers import configure_exception_handlers
from registration_service.app.lifespan import lifespan
from registration_service.app.middleware import configure_middleware
from registration_service.app.router import setup_routers
from registration_service.core.settings import Settings, get_settings


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Settings to build the application with. Defaults to the
            cached unified settings; tests pass their own.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    app_settings = settings.app

    app = FastAPI(
        title=app_settings.title,
        description=app_settings.description,
        version=app_settings.version,
        docs_url=app_settings.get_docs_url(),
        redoc_url=app_settings.get_redoc_url(),
        openapi_url=app_settings.get_openapi_url(),
        root_path=app_settings.root_path,
        debug=app_settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registration = None

    # Exception handlers first so middleware errors are rendered too
    configure_exception_handlers(app)
    configure_middleware(app, settings)
    setup_routers(app)

    return app


# Application instance for uvicorn
app = create_app()
