"""In-process entity store."""

import logging
from typing import Dict, List

from pydantic import BaseModel

from metierflow.schemas.entitySchemas import ENTITY_SCHEMAS
from metierflow.store.base import EntityStore, Record, coerce_record, schema_for
from metierflow.store.errors import EntityNotFoundError

logger = logging.getLogger(__name__)


class MemoryEntityStore(EntityStore):
    """Keeps every collection in insertion order; records are copied in and out."""

    name = "memory"

    def __init__(self):
        self._collections: Dict[str, List[BaseModel]] = {entity: [] for entity in ENTITY_SCHEMAS}

    def _items(self, entity: str) -> List[BaseModel]:
        schema_for(entity)
        return self._collections[entity]

    def _index_of(self, entity: str, entity_id: str) -> int:
        for index, item in enumerate(self._items(entity)):
            if item.id == entity_id:
                return index
        raise EntityNotFoundError(entity, entity_id)

    async def get_all(self, entity: str) -> List[BaseModel]:
        return [item.model_copy(deep=True) for item in self._items(entity)]

    async def create(self, entity: str, record: Record) -> BaseModel:
        item = coerce_record(entity, record)
        self._items(entity).append(item)
        return item.model_copy(deep=True)

    async def update(self, entity: str, entity_id: str, record: Record) -> BaseModel:
        index = self._index_of(entity, entity_id)
        item = coerce_record(entity, record, entity_id)
        self._items(entity)[index] = item
        return item.model_copy(deep=True)

    async def delete(self, entity: str, entity_id: str) -> None:
        index = self._index_of(entity, entity_id)
        del self._items(entity)[index]

    async def replace_all(self, entity: str, records: List[Record]) -> None:
        schema_for(entity)
        self._collections[entity] = [coerce_record(entity, r) for r in records]
        logger.info(f"🌱 Wrote {len(records)} {entity} records")
