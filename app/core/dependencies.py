from typing import Optional

from fastapi import Request

from app.core.settings import Settings
from app.data.registry import PackRegistry
from app.services.archive_cache import ArchiveCache
from app.services.watcher import ChangeWatcher

# The objects themselves are created in app.main on startup and owned by
# the application instance; these helpers only hand them to routes.


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pack_registry(request: Request) -> PackRegistry:
    return request.app.state.registry


def get_archive_cache(request: Request) -> ArchiveCache:
    return request.app.state.archive_cache


def get_watcher(request: Request) -> Optional[ChangeWatcher]:
    return getattr(request.app.state, "watcher", None)
