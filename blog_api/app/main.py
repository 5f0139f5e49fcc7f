"""
Main entrypoint for the Blog API.

This module assembles the FastAPI application: it sets up logging,
builds the services from a ``Settings`` instance, registers CORS and
error handlers and includes the versioned routers.  The module level
``app`` is built from environment settings so that it can be served
directly, e.g.::

    uvicorn blog_api.app.main:app --reload
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.error_handlers import register_error_handlers
from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.db import get_database_path, init_db
from .core.logging_config import setup_logging
from .core.security import TokenService
from .services.post_service import PostService
from .services.query_service import QueryService
from .services.user_service import UserService


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to build the app with.  Defaults to the settings
        read from the environment.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.  The database is
        migrated on startup.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that the services
    # built below can log.
    setup_logging(settings.log_level, settings.log_file or None)

    db_path = get_database_path(settings.database_url)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.state.settings = settings
    app.state.token_service = TokenService(settings.secret_key)
    app.state.user_service = UserService(db_path, settings.password_salt)
    app.state.post_service = PostService(db_path, settings.max_posts, settings.max_cover_bytes)
    app.state.query_service = QueryService(db_path)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(v1_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file if needed and applies migrations.
        init_db(db_path)

    return app


app = create_app()
