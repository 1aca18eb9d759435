"""
Write the built-in seed data into the configured entity store.
Usage: python scripts/seed_store.py [--force] [--backend sql|remote]

Run once when setting up a new database; without --force a store that
already holds records is left alone.
"""
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

import argparse
import asyncio
from metierflow.core.dependencies import create_store
from metierflow.schemas.entitySchemas import SNAPSHOT_FIELDS
from metierflow.store.seed import seed_snapshot


async def seed(force: bool, backend: str = None):
    store = create_store(backend)
    await store.init()
    try:
        if not force and not await store.is_empty():
            print("⚠️ Store already has data, use --force to overwrite")
            return

        snapshot = seed_snapshot()
        await store.seed(snapshot)
        for entity, attribute in SNAPSHOT_FIELDS.items():
            print(f"✅ {entity}: {len(getattr(snapshot, attribute))} records")
        print("🌱 Seeding complete")
    finally:
        await store.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Metier WorkFlow entity store")
    parser.add_argument("--force", action="store_true", help="overwrite existing records")
    parser.add_argument("--backend", choices=["sql", "remote"], default=None)
    args = parser.parse_args()
    asyncio.run(seed(args.force, args.backend))
