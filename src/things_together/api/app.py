"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from things_together.api.actions import router as actions_router
from things_together.api.admin import router as admin_router
from things_together.api.pages import router as pages_router
from things_together.app_logging import configure_logging
from things_together.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    logger = configure_logging(container.settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        state_container: AppContainer = app.state.container
        logger.info(
            "Closing client sessions",
            extra={"open_sessions": len(state_container.client_sessions)},
        )
        state_container.client_sessions.close_all()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)
    app.include_router(actions_router)
    app.include_router(pages_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
