import logging
import asyncio
from typing import Optional
from pymongo import AsyncMongoClient
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from medreminder.db.schedules import ScheduleStore

logger = logging.getLogger(__name__)


MAX_RETRIES = 3
RETRY_DELAY = 2
CONNECTION_TIMEOUT = 10
MAX_POOL_SIZE = 50
MIN_POOL_SIZE = 1


#------This Function handles the database connection---------
async def connect_db(mongodb_uri: str) -> AsyncMongoClient:
    retry_count = 0
    last_error = None

    while retry_count < MAX_RETRIES:
        try:
            logger.info(f"Attempting database connection (attempt {retry_count + 1}/{MAX_RETRIES})...")

            client = AsyncMongoClient(
                mongodb_uri,
                maxPoolSize=MAX_POOL_SIZE,
                minPoolSize=MIN_POOL_SIZE,
                connectTimeoutMS=CONNECTION_TIMEOUT * 1000,
                serverSelectionTimeoutMS=CONNECTION_TIMEOUT * 1000,
                retryWrites=True,
                tz_aware=True,
            )

            try:
                await client.admin.command('ping')
            except Exception:
                await client.close()
                raise
            logger.info("Database connection established successfully")
            return client

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            last_error = e
            retry_count += 1
            logger.warning(f"Database connection attempt {retry_count} failed: {str(e)}")
            if retry_count < MAX_RETRIES:
                await asyncio.sleep(RETRY_DELAY * retry_count)

    logger.error(f"Failed to connect to database after {MAX_RETRIES} attempts")
    raise RuntimeError(f"Failed to connect to database: {str(last_error)}")


#------This Function builds the schedule store---------
async def init_schedule_store(client: AsyncMongoClient, db_name: str) -> ScheduleStore:
    store = ScheduleStore(client[db_name])
    await store.ensure_indexes()
    logger.info("Database initialization completed")
    return store


#------This Function closes the database connection---------
async def close_db(client: Optional[AsyncMongoClient]):
    if client:
        try:
            await client.close()
            logger.info("Database connection closed")
        except Exception as e:
            logger.error(f"Error closing database connection: {str(e)}")


#------This Function checks the database health status---------
async def check_db_health(client: Optional[AsyncMongoClient], db_name: str) -> dict:
    try:
        if client is None:
            return {"status": "unhealthy", "error": "Database not initialized"}

        await client.admin.command('ping')
        return {"status": "healthy", "database": db_name}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
