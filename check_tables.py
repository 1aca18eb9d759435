from metierflow.core.database import session_manager
from metierflow.store.sql import MODELS_BY_ENTITY
from sqlalchemy import func, select
import asyncio


async def report_entity_tables():
    await session_manager.init()
    try:
        print("✅ Tables in database:", await session_manager.table_names())
        async with session_manager.get_session() as db:
            for entity, model in MODELS_BY_ENTITY.items():
                count = await db.scalar(select(func.count()).select_from(model))
                print(f"   {entity:<14} {model.__tablename__:<16} {count} rows")
    finally:
        await session_manager.close()

asyncio.run(report_entity_tables())
