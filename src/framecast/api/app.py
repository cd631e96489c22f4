"""FastAPI application factory."""

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from framecast.api.dependencies import get_toolchain_status
from framecast.api.middleware import framecast_error_handler
from framecast.api.routes import download, generate, render, status
from framecast.models.errors import FramecastError
from framecast.rendering.toolchain import ToolchainStatus


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="framecast",
        description="Frame-deterministic video rendering and encoding",
        version="0.1.0",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handlers
    app.add_exception_handler(FramecastError, framecast_error_handler)

    # Routes
    app.include_router(render.router)
    app.include_router(status.router)
    app.include_router(download.router)
    app.include_router(generate.router)

    @app.get("/health")
    async def health(toolchain: ToolchainStatus = Depends(get_toolchain_status)):
        return {
            "status": "ok" if toolchain.ok else "degraded",
            "version": "0.1.0",
            "toolchain": toolchain.model_dump(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    from framecast.config import get_settings

    settings = get_settings()
    uvicorn.run("framecast.api.app:app", host=settings.api_host, port=settings.api_port)
