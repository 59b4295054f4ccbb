"""FastAPI application factory for navigator access."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from navigator_access.common.config import get_settings
from navigator_access.common.schemas import HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Shutdown
        from navigator_access.deps import close_clients
        await close_clients()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from navigator_access.payments.router import router as payments_router
    from navigator_access.identity.router import router as access_router

    app.include_router(payments_router)
    app.include_router(access_router, tags=["access"])

    return app
