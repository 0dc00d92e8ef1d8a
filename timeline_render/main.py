import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from timeline_render.api import render
from timeline_render.config import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.app_version)

    # Global exception handler to ensure errors return the render result shape
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error", "error_code": "INTERNAL_ERROR"},
        )

    app.include_router(render.router, prefix="/api", tags=["render"])

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()
