from __future__ import annotations

import logging
import time
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from app.core.dependencies import (
    get_archive_cache,
    get_pack_registry,
    get_settings,
    get_watcher,
)
from app.core.settings import Settings
from app.data.registry import PackRegistry
from app.domain.models import Pack
from app.services.archive_cache import ArchiveCache

logger = logging.getLogger(__name__)
router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[1] / "templates"))

SERVER_NAME = "Resource Pack Server"
SERVER_VERSION = "1.0.0"
PACK_NOT_FOUND = "Resource pack not found"


def _get_pack_or_404(registry: PackRegistry, name: str) -> Pack:
    pack = registry.get(name)
    if pack is None:
        raise HTTPException(status_code=404, detail=PACK_NOT_FOUND)
    return pack


# ---------------------------------------------------------------------------
# 1. GET /  (browser listing)
# ---------------------------------------------------------------------------

@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    registry: PackRegistry = Depends(get_pack_registry),
) -> HTMLResponse:
    packs = registry.all()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": "Minecraft Resource Pack Server",
            "packs": packs,
        },
    )


# ---------------------------------------------------------------------------
# 2. JSON listing and lookup
# ---------------------------------------------------------------------------

@router.get("/api/packs")
async def list_packs(registry: PackRegistry = Depends(get_pack_registry)) -> dict:
    data = [pack.to_api() for pack in registry.all()]
    return {
        "success": True,
        "data": data,
        "count": len(data),
    }


@router.get("/api/packs/{name}")
async def get_pack(name: str, registry: PackRegistry = Depends(get_pack_registry)) -> dict:
    pack = _get_pack_or_404(registry, name)
    return {
        "success": True,
        "data": pack.to_api(),
    }


@router.get("/hash/{name}")
async def get_pack_hash(name: str, registry: PackRegistry = Depends(get_pack_registry)) -> dict:
    digest = registry.hash(name)
    if digest is None:
        raise HTTPException(status_code=404, detail=PACK_NOT_FOUND)
    return {
        "success": True,
        "data": {
            "name": name,
            "hash": digest,
            "hash_type": "MD5",
        },
    }


# ---------------------------------------------------------------------------
# 3. Download
# ---------------------------------------------------------------------------

@router.get("/download/{name}")
def download_pack(
    name: str,
    registry: PackRegistry = Depends(get_pack_registry),
    archive_cache: ArchiveCache = Depends(get_archive_cache),
):
    """
    Serve the pack as a zip. Directory packs are zipped on demand, so this
    is a sync route and runs in the threadpool.
    """
    pack = _get_pack_or_404(registry, name)

    try:
        served_path = archive_cache.materialize_downloadable(pack)
    except OSError as e:
        logger.error(f"Failed to build archive for resource pack {name}: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to build resource pack archive"},
        )

    if served_path is None:
        raise HTTPException(status_code=404, detail=PACK_NOT_FOUND)

    return FileResponse(
        path=str(served_path),
        filename=f"{pack.name}.zip",
        media_type="application/zip",
    )


# ---------------------------------------------------------------------------
# 4. Maintenance
# ---------------------------------------------------------------------------

@router.get("/api/rescan")
async def rescan_packs(registry: PackRegistry = Depends(get_pack_registry)) -> dict:
    registry.trigger_rescan()
    return {
        "success": True,
        "message": "Resource pack rescan started",
        "timestamp": int(time.time()),
    }


@router.get("/debug")
async def debug_info(
    request: Request,
    settings: Settings = Depends(get_settings),
    registry: PackRegistry = Depends(get_pack_registry),
) -> dict:
    watcher = get_watcher(request)
    last_scan = registry.last_scan_time
    return {
        "server": SERVER_NAME,
        "version": SERVER_VERSION,
        "config": {
            "host": settings.server.host,
            "port": settings.server.port,
            "debug": settings.server.debug,
        },
        "packs": {
            "directory": str(registry.root_directory()),
            "count": len(registry.all()),
            "last_scan": int(last_scan) if last_scan is not None else None,
            "file_monitor": watcher is not None and watcher.is_running,
        },
        "endpoints": {
            "list_packs": "/api/packs",
            "get_pack": "/api/packs/{name}",
            "download": "/download/{name}",
            "hash": "/hash/{name}",
            "rescan": "/api/rescan",
            "debug": "/debug",
        },
        "timestamp": int(time.time()),
    }
