"""Store construction and the FastAPI dependencies that hand it to endpoints."""
import logging
from fastapi import Request

from metierflow.core.config import settings
from metierflow.services.EntityApiClient import RemoteEntityStore
from metierflow.services.SnapshotCache import SnapshotCache
from metierflow.services.WorkspaceService import WorkspaceService
from metierflow.store.base import EntityStore
from metierflow.store.memory import MemoryEntityStore
from metierflow.store.sql import SqlEntityStore

logger = logging.getLogger(__name__)


def create_store(backend: str = None) -> EntityStore:
    backend = (backend or settings.STORE_BACKEND).lower()
    logger.info(f"🗄️ Using {backend} entity store")
    if backend == "memory":
        return MemoryEntityStore()
    if backend == "remote":
        return RemoteEntityStore()
    if backend == "sql":
        return SqlEntityStore()
    raise ValueError(f"Unknown STORE_BACKEND: {backend}")


def create_workspace(store: EntityStore) -> WorkspaceService:
    return WorkspaceService(store, cache=SnapshotCache())


def get_store(request: Request) -> EntityStore:
    """FastAPI dependency returning the store created at startup."""
    return request.app.state.store


def get_workspace(request: Request) -> WorkspaceService:
    return request.app.state.workspace
