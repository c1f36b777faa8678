import logging
import sys
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.packs import SERVER_VERSION, router as packs_router
from app.core.settings import LoggingConfig, Settings, load_settings, resolve_packs_directory
from app.data.registry import PackRegistry
from app.services.archive_cache import ArchiveCache
from app.services.watcher import ChangeWatcher

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig) -> None:
    """
    Log to stdout and, when configured, to a file as well.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=config.level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application. Settings are read from disk on startup unless
    given explicitly.
    """
    app = FastAPI(
        title="Resource Pack Server",
        version=SERVER_VERSION,
        description="Serves Minecraft resource packs from a watched directory.",
    )

    @app.on_event("startup")
    async def startup_event() -> None:
        """
        Load settings, build the initial pack index and start the watcher.

        The first scan runs before the server accepts requests.
        """
        resolved = settings or load_settings()
        if settings is None:
            configure_logging(resolved.logging)
        logger.info("Starting resource pack server...")

        packs_dir = resolve_packs_directory(resolved)
        packs_dir.mkdir(parents=True, exist_ok=True)

        registry = PackRegistry(packs_dir)
        if not registry.rescan():
            logger.error("Initial resource pack scan failed, starting with an empty index")

        temp_dir = Path(resolved.packs.temp_dir) if resolved.packs.temp_dir else None
        app.state.settings = resolved
        app.state.registry = registry
        app.state.archive_cache = ArchiveCache(temp_dir)
        app.state.watcher = None

        if resolved.packs.file_monitor:
            watcher = ChangeWatcher(
                registry,
                settle_delay=resolved.packs.file_monitor_interval,
                scan_cooldown=resolved.packs.scan_cooldown,
            )
            if watcher.start():
                app.state.watcher = watcher
            else:
                logger.warning("Continuing without file monitoring; use /api/rescan to refresh")

        logger.info(f"Resource pack server ready, serving {packs_dir}")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        logger.info("Shutting down resource pack server...")
        watcher = getattr(app.state, "watcher", None)
        if watcher is not None:
            watcher.stop()
        registry = getattr(app.state, "registry", None)
        if registry is not None:
            registry.close()
        logger.info("Server stopped")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Error handling {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error", "status": 500},
        )

    @app.get("/health")
    async def health() -> dict:
        """
        Lightweight health check endpoint.
        """
        return {"status": "ok"}

    app.include_router(packs_router, tags=["packs"])
    return app


app = create_app()


if __name__ == "__main__":
    """
    Allow running `python -m app.main` to start the Uvicorn server with the
    host and port from settings.yaml.
    """
    import uvicorn

    cli_settings = load_settings()
    configure_logging(cli_settings.logging)
    uvicorn.run(
        create_app(cli_settings),
        host=cli_settings.server.host,
        port=cli_settings.server.port,
        log_config=None,
    )
