"""MongoDB connection management.

Provides the process-wide client used by the credential store, with bounded
timeouts so an unreachable server surfaces as an error instead of hanging
the request.
"""

import logging

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from app.config import get_settings

logger = logging.getLogger(__name__)

# Global MongoDB client instance
_client: MongoClient | None = None


def get_client() -> MongoClient:
    """Get or create the MongoDB client singleton.

    Returns:
        MongoClient instance.
    """
    global _client
    if _client is None:
        settings = get_settings()
        timeout_ms = settings.mongo.timeout_ms
        logger.info("Connecting to MongoDB...")
        _client = MongoClient(
            settings.mongo.uri,
            tz_aware=True,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
        )
        logger.info("MongoDB connection established")
    return _client


def get_database() -> Database:
    """Get the application database.

    Returns:
        Database instance.
    """
    settings = get_settings()
    client = get_client()
    return client[settings.mongo.db_name]


def get_collection(name: str) -> Collection:
    """Get a collection by name from the application database.

    Args:
        name: Collection name.

    Returns:
        Collection instance.
    """
    db = get_database()
    return db[name]


def ping() -> None:
    """Round-trip to the server; raises if it is unreachable."""
    get_database().command("ping")


def close_client() -> None:
    """Close the MongoDB client connection gracefully."""
    global _client
    if _client is not None:
        logger.info("Closing MongoDB connection...")
        _client.close()
        _client = None
        logger.info("MongoDB connection closed")
