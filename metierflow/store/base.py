"""Abstract entity store: one ordered collection of records per entity name."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ValidationError

from metierflow.schemas.entitySchemas import AppData, ENTITY_SCHEMAS, SNAPSHOT_FIELDS
from metierflow.store.errors import StoreError, UnknownEntityError

Record = Union[BaseModel, Dict[str, Any]]


def schema_for(entity: str):
    schema = ENTITY_SCHEMAS.get(entity)
    if schema is None:
        raise UnknownEntityError(entity)
    return schema


def coerce_record(entity: str, record: Record, entity_id: str = None) -> BaseModel:
    """Validate a dict (camelCase or snake_case keys) or model against the collection schema."""
    schema = schema_for(entity)
    if isinstance(record, BaseModel):
        record = record.model_dump()
    else:
        record = dict(record)
    if entity_id is not None:
        record["id"] = entity_id
    try:
        return schema.model_validate(record)
    except ValidationError as e:
        raise StoreError(f"Invalid {entity} record: {e}") from e


class EntityStore(ABC):
    """
    Async CRUD over the seven entity collections.

    Implementations raise ``UnknownEntityError`` for names outside
    ``ENTITY_SCHEMAS``, ``EntityNotFoundError`` when update/delete misses,
    and ``StoreError`` for every other failure.
    """

    name = "store"

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def get_all(self, entity: str) -> List[BaseModel]:
        ...

    @abstractmethod
    async def create(self, entity: str, record: Record) -> BaseModel:
        ...

    @abstractmethod
    async def update(self, entity: str, entity_id: str, record: Record) -> BaseModel:
        ...

    @abstractmethod
    async def delete(self, entity: str, entity_id: str) -> None:
        ...

    @abstractmethod
    async def replace_all(self, entity: str, records: List[Record]) -> None:
        """Overwrite a whole collection (used for seeding)."""

    async def is_empty(self) -> bool:
        for entity in ENTITY_SCHEMAS:
            if await self.get_all(entity):
                return False
        return True

    async def load_snapshot(self) -> AppData:
        """Fetch every collection into one ``AppData``."""
        collections = {}
        for entity, attribute in SNAPSHOT_FIELDS.items():
            collections[attribute] = await self.get_all(entity)
        return AppData(**collections)

    async def seed(self, snapshot: AppData) -> None:
        for entity, attribute in SNAPSHOT_FIELDS.items():
            await self.replace_all(entity, list(getattr(snapshot, attribute)))
