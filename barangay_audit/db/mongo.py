from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from barangay_audit.core.config import get_settings

AUDIT_LOGS = "audit_logs"
COUNTERS = "counters"
USERS = "users"
SITIOS = "sitios"


@lru_cache
def get_client() -> AsyncIOMotorClient:
    settings = get_settings()
    return AsyncIOMotorClient(settings.mongo_uri, tz_aware=True)


def get_db() -> AsyncIOMotorDatabase:
    """
    FastAPI dependency that returns the Mongo database instance
    """
    return get_client()[get_settings().mongo_db]


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    audit = db[AUDIT_LOGS]
    await audit.create_index([("event_time", -1), ("id", -1)])
    await audit.create_index("id", unique=True)
    await audit.create_index("entity_type")
