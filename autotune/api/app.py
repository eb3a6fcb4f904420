"""
FastAPI application factory.

The application container is either passed in (tests, embedding) or built
in the lifespan from RuntimeSettings / the YAML config.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from autotune import __version__
from autotune.application import AutotuneApplication
from autotune.config.settings import RuntimeSettings
from autotune.utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start the engine on startup, stop it on shutdown."""
    application: AutotuneApplication | None = getattr(app.state, "application", None)
    if application is None:
        config = RuntimeSettings().load_app_config()
        application = AutotuneApplication(config)
        application.configure_logging()
        app.state.application = application

    await application.start()
    logger.info(
        "Autotune service started",
        database=application.db.engine.dialect.name,
        evaluation_enabled=application.config.evaluation.enabled,
    )

    yield

    await application.shutdown()
    logger.info("Autotune service stopped")


def create_app(application: AutotuneApplication | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Autotune",
        description="Strategy parameter optimization and continuous Set evaluation",
        version=__version__,
        lifespan=lifespan,
    )
    if application is not None:
        app.state.application = application

    from autotune.api.routes import router
    app.include_router(router)

    return app
