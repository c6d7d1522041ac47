"""Synchronize the search index with the latest version of every collection."""
import asyncio
import logging

import database
from catalog import Collection, VersionedEntityStore
from catalog.tables import COLLECTIONS_TABLE, SEARCH_DOCUMENTS_TABLE
from config import settings_conf
from . import SearchIndex, sync_collections

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

async def main():
    logger.info("Initializing database...")
    await database.init_db(settings_conf['db_url'])
    try:
        store = VersionedEntityStore(await database.open_table(COLLECTIONS_TABLE), Collection)
        index = SearchIndex(await database.open_table(SEARCH_DOCUMENTS_TABLE))
        count = await sync_collections(store, index)
        logger.info(f"Search index synchronized ({count} collections)")
    except Exception as e:
        logger.error(f"Search synchronization failed: {e}")
        raise
    finally:
        logger.info("Closing database connections...")
        await database.close()

if __name__ == "__main__":
    asyncio.run(main())
