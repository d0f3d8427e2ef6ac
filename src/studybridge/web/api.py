"""FastAPI application factory.

Main entry point for the studybridge middleware. Run with
``uvicorn studybridge.web.api:app --port $PORT``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI

from studybridge.config.app_config import AppConfig, load_app_config
from studybridge.upstream.client import UpstreamPool
from studybridge.web.errors import register_error_handlers
from studybridge.web.routes import (
    analyses_router,
    classrooms_router,
    content_router,
    profiles_router,
    sessions_router,
    subjects_router,
    teacher_router,
    topics_router,
    user_topics_router,
    users_router,
)

logger = structlog.get_logger(__name__)

API_PREFIX = "/api"


def create_app(config: AppConfig | None = None, pool: UpstreamPool | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application config (loaded from file/environment if omitted)
        pool: Prebuilt upstream pool; built at startup if omitted

    Returns:
        Configured FastAPI app instance
    """
    if config is None:
        config = load_app_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build the upstream pool once and close it at shutdown."""
        upstream = pool if pool is not None else UpstreamPool(config.upstream)
        app.state.upstream = upstream
        logger.info(
            "app_startup",
            upstream=config.upstream.base_url,
            port=config.server.port,
        )
        yield
        logger.info("app_shutdown")
        await upstream.aclose()
        app.state.upstream = None

    app = FastAPI(
        title="Studybridge API",
        description="Backend-for-frontend between the study apps and the content service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config

    register_error_handlers(app)

    # Include routers
    app.include_router(content_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(profiles_router, prefix=API_PREFIX)
    app.include_router(subjects_router, prefix=API_PREFIX)
    app.include_router(sessions_router, prefix=API_PREFIX)
    app.include_router(user_topics_router, prefix=API_PREFIX)
    app.include_router(topics_router, prefix=API_PREFIX)
    app.include_router(analyses_router, prefix=API_PREFIX)
    app.include_router(classrooms_router, prefix=API_PREFIX)
    app.include_router(teacher_router, prefix=API_PREFIX)

    return app


# Default app instance for uvicorn
app = create_app()
