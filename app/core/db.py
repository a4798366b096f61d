"""
MongoDB connection management.

The process holds exactly one Motor client. It is created once by
``mongo.connect()`` (called from the application lifespan), reused by every
request through ``get_database()``, and torn down by ``mongo.close()`` on
shutdown. Calling ``connect()`` again while connected is a no-op.
"""

import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, TEXT, IndexModel

from app.core.config import settings

logger = logging.getLogger(__name__)

SHIPMENTS = "shipments"
USERS = "users"

SHIPMENT_INDEXES = [
    IndexModel([("tracking_number", ASCENDING)], unique=True),
    IndexModel([("status", ASCENDING)]),
    IndexModel([("priority", ASCENDING)]),
    IndexModel([("carrier", ASCENDING)]),
    IndexModel([("estimated_delivery", ASCENDING)]),
    IndexModel([("is_flagged", ASCENDING)]),
    IndexModel([("status", ASCENDING), ("priority", ASCENDING)]),
    IndexModel([("carrier", ASCENDING), ("status", ASCENDING)]),
    IndexModel([("estimated_delivery", ASCENDING), ("status", ASCENDING)]),
    IndexModel([("destination.city", ASCENDING), ("destination.state", ASCENDING)]),
    IndexModel([("created_at", DESCENDING)]),
    IndexModel([("updated_at", DESCENDING)]),
    # Backs the free-text `search` filter
    IndexModel(
        [
            ("tracking_number", TEXT),
            ("description", TEXT),
            ("origin.city", TEXT),
            ("destination.city", TEXT),
            ("carrier", TEXT),
        ],
        name="shipment_text_search",
    ),
]

USER_INDEXES = [
    IndexModel([("email", ASCENDING)], unique=True),
    IndexModel([("is_active", ASCENDING), ("created_at", DESCENDING)]),
]


class MongoConnection:
    """Process-wide MongoDB client holder with initialize-once semantics."""

    def __init__(self) -> None:
        self._client: AsyncIOMotorClient | None = None
        self._database_name: str | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(
        self, uri: str | None = None, database: str | None = None
    ) -> AsyncIOMotorDatabase:
        """
        Create the shared client if it does not exist yet.

        Args:
            uri: MongoDB connection string (defaults to MONGODB_URI)
            database: Database name (defaults to MONGODB_DATABASE)

        Returns:
            The application database handle
        """
        async with self._lock:
            if self._client is None:
                self._client = AsyncIOMotorClient(
                    uri or settings.mongodb_uri,
                    tz_aware=True,
                    appname=settings.app_name,
                    serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
                )
                self._database_name = database or settings.mongodb_database
                logger.info("Connected to MongoDB database %s", self._database_name)
        return self.get_database()

    def get_database(self) -> AsyncIOMotorDatabase:
        if self._client is None or self._database_name is None:
            raise RuntimeError("MongoDB is not connected; call mongo.connect() first")
        return self._client[self._database_name]

    async def close(self) -> None:
        async with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
                self._database_name = None
                logger.info("Closed MongoDB connection")


mongo = MongoConnection()


def get_database() -> AsyncIOMotorDatabase:
    """
    FastAPI dependency returning the shared database handle.

    Raises:
        RuntimeError: If the application has not connected yet
    """
    return mongo.get_database()


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the collection indexes the query layer relies on."""
    await db[SHIPMENTS].create_indexes(SHIPMENT_INDEXES)
    await db[USERS].create_indexes(USER_INDEXES)
    logger.info("Ensured indexes on %s and %s", SHIPMENTS, USERS)
