"""Generic REST CRUD, one router per entity collection (``/projects``, ``/tasks``...)."""

import logging
from typing import List
from fastapi import APIRouter, Depends, status

from metierflow.core.dependencies import get_store
from metierflow.schemas.entitySchemas import ENTITY_SCHEMAS
from metierflow.store.base import EntityStore
from metierflow.store.errors import StoreError
from metierflow.utils.http_errors import to_http_exception

logger = logging.getLogger(__name__)


def create_entity_router(entity: str) -> APIRouter:
    schema = ENTITY_SCHEMAS[entity]
    router = APIRouter(
        prefix=f"/{entity}",
        tags=[entity]
    )

    @router.get("", response_model=List[schema])
    async def list_items(store: EntityStore = Depends(get_store)):
        """All records of the collection in stored order."""
        try:
            return await store.get_all(entity)
        except StoreError as e:
            logger.error(f"Failed to list {entity}: {str(e)}")
            raise to_http_exception(e)

    @router.post("", response_model=schema, status_code=status.HTTP_201_CREATED)
    async def create_item(record: schema, store: EntityStore = Depends(get_store)):
        try:
            return await store.create(entity, record)
        except StoreError as e:
            logger.error(f"Failed to create {entity}: {str(e)}")
            raise to_http_exception(e)

    @router.put("/{item_id}", response_model=schema)
    async def update_item(item_id: str, record: schema, store: EntityStore = Depends(get_store)):
        """Replace a record; the path id wins over any id in the body."""
        try:
            return await store.update(entity, item_id, record)
        except StoreError as e:
            raise to_http_exception(e)

    @router.delete("/{item_id}")
    async def delete_item(item_id: str, store: EntityStore = Depends(get_store)):
        try:
            await store.delete(entity, item_id)
        except StoreError as e:
            raise to_http_exception(e)
        return {"success": True}

    return router


routers = [create_entity_router(entity) for entity in ENTITY_SCHEMAS]
