"""SQLAlchemy-backed entity store, one table per collection."""

import logging
from typing import List

import asyncpg
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from metierflow.core.database import DatabaseSessionManager, session_manager
from metierflow.models.activitylog import ActivityLogRow
from metierflow.models.department import DepartmentRow
from metierflow.models.project import ProjectRow
from metierflow.models.task import TaskRow
from metierflow.models.tasktemplate import TaskTemplateRow
from metierflow.models.tasktype import TaskTypeRow
from metierflow.models.user import UserRow
from metierflow.store.base import EntityStore, Record, coerce_record, schema_for
from metierflow.store.errors import EntityNotFoundError, StoreError

logger = logging.getLogger(__name__)

_DB_ERRORS = (SQLAlchemyError, asyncpg.PostgresError, OSError)

MODELS_BY_ENTITY = {
    row.__collection__: row
    for row in (ProjectRow, DepartmentRow, UserRow, TaskTypeRow, TaskRow, ActivityLogRow, TaskTemplateRow)
}


def _row_values(item: BaseModel) -> dict:
    return item.model_dump(mode="json")


class SqlEntityStore(EntityStore):
    name = "sql"

    def __init__(self, manager: DatabaseSessionManager = None):
        self.manager = manager or session_manager

    async def init(self) -> None:
        try:
            await self.manager.init()
        except _DB_ERRORS as e:
            raise StoreError(f"Database unavailable: {str(e)}") from e

    async def close(self) -> None:
        await self.manager.close()

    def _model(self, entity: str):
        schema_for(entity)
        if self.manager.session_factory is None:
            raise StoreError("Database not initialized")
        return MODELS_BY_ENTITY[entity]

    async def get_all(self, entity: str) -> List[BaseModel]:
        schema = schema_for(entity)
        model = self._model(entity)
        try:
            async with self.manager.get_session() as db:
                result = await db.execute(select(model).order_by(model.created_at, model.id))
                rows = result.scalars().all()
                return [schema.model_validate(row) for row in rows]
        except _DB_ERRORS as e:
            logger.error(f"❌ Failed to read {entity}: {str(e)}")
            raise StoreError(f"Failed to read {entity}: {str(e)}") from e

    async def create(self, entity: str, record: Record) -> BaseModel:
        model = self._model(entity)
        item = coerce_record(entity, record)
        try:
            async with self.manager.get_session() as db:
                db.add(model(**_row_values(item)))
        except _DB_ERRORS as e:
            logger.error(f"❌ Failed to create {entity}: {str(e)}")
            raise StoreError(f"Failed to create {entity}: {str(e)}") from e
        return item

    async def update(self, entity: str, entity_id: str, record: Record) -> BaseModel:
        model = self._model(entity)
        item = coerce_record(entity, record, entity_id)
        try:
            async with self.manager.get_session() as db:
                row = await db.get(model, entity_id)
                if row is None:
                    raise EntityNotFoundError(entity, entity_id)
                for column, value in _row_values(item).items():
                    setattr(row, column, value)
        except _DB_ERRORS as e:
            logger.error(f"❌ Failed to update {entity} {entity_id}: {str(e)}")
            raise StoreError(f"Failed to update {entity}: {str(e)}") from e
        return item

    async def delete(self, entity: str, entity_id: str) -> None:
        model = self._model(entity)
        try:
            async with self.manager.get_session() as db:
                row = await db.get(model, entity_id)
                if row is None:
                    raise EntityNotFoundError(entity, entity_id)
                await db.delete(row)
        except _DB_ERRORS as e:
            logger.error(f"❌ Failed to delete {entity} {entity_id}: {str(e)}")
            raise StoreError(f"Failed to delete {entity}: {str(e)}") from e

    async def replace_all(self, entity: str, records: List[Record]) -> None:
        model = self._model(entity)
        items = [coerce_record(entity, r) for r in records]
        try:
            async with self.manager.get_session() as db:
                await db.execute(delete(model))
                db.add_all([model(**_row_values(item)) for item in items])
        except _DB_ERRORS as e:
            raise StoreError(f"Failed to seed {entity}: {str(e)}") from e
        logger.info(f"🌱 Wrote {len(items)} {entity} records")
