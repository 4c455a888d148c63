"""
MongoDB connection setup.

One motor client per process. Collections are created lazily by MongoDB, so
only the indexes need setting up at startup.
"""

import logging
from typing import Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import OperationFailure, PyMongoError

from errors import StorageError

logger = logging.getLogger(__name__)

VERIFIED_WALLETS = "verified_wallets"
LEADERBOARD = "leaderboard"
WHALE_ADDRESSES = "whale_addresses"

# Case-insensitive comparison for wallet addresses
CASE_INSENSITIVE = {"locale": "en", "strength": 2}

# IndexOptionsConflict / IndexKeySpecsConflict: an equivalent index already exists
INDEX_EXISTS_CODES = {85, 86}


class Database:
    """Holds the motor client for the lifetime of the bot."""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls, uri: str, db_name: str) -> AsyncIOMotorDatabase:
        if cls.client is None:
            if not uri:
                raise ValueError("MONGODB_URI not found in environment variables")

            cls.client = AsyncIOMotorClient(uri, maxPoolSize=10, minPoolSize=1)
            cls.db = cls.client[db_name]

            try:
                await cls.client.admin.command("ping")
            except PyMongoError as e:
                raise StorageError(f"Could not reach MongoDB: {e}") from e
            logger.info(f"Connected to MongoDB: {db_name}")
        return cls.db

    @classmethod
    async def disconnect(cls):
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("Disconnected from MongoDB")


async def ensure_index(db: AsyncIOMotorDatabase, collection: str, keys, **kwargs) -> bool:
    """
    Create an index, treating "already exists" as success.
    Returns False only when creation genuinely failed.
    """
    try:
        await db[collection].create_index(keys, **kwargs)
        logger.info(f"Created index on {collection} collection")
        return True
    except OperationFailure as e:
        if e.code in INDEX_EXISTS_CODES:
            logger.info(f"Index already exists on {collection} collection")
            return True
        logger.error(f"Error creating index on {collection}: {e}")
        return False
    except PyMongoError as e:
        logger.error(f"Error creating index on {collection}: {e}")
        return False


async def create_indexes(db: AsyncIOMotorDatabase, community_collections: Iterable[str] = ()):
    """Index every collection by its natural key. Safe to run on every start."""
    await ensure_index(db, VERIFIED_WALLETS, "walletAddress", collation=CASE_INSENSITIVE)
    await ensure_index(db, VERIFIED_WALLETS, "userId")
    await ensure_index(db, LEADERBOARD, "address")
    await ensure_index(db, WHALE_ADDRESSES, "userId", unique=True)

    for name in community_collections:
        await ensure_index(db, name, "address")

    logger.info("Database collections initialized")
