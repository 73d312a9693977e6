"""
MongoDB client lifecycle.

The client is an explicitly constructed object with open/close, created
once by the application lifespan and handed to request handlers through
FastAPI dependency injection (no module-level connection singleton).
"""

from typing import Any, Dict, Optional

from fastapi import Request
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConfigurationError, PyMongoError

from config.settings import Settings, get_settings
from core.logging import get_logger

logger = get_logger(__name__)


class MongoConnectionError(Exception):
    """Raised when the MongoDB client cannot be created or is not open."""
    pass


class MongoDatabase:
    """
    Owns one MongoClient and the database handle used by the search engine.

    Usage:
        with MongoDatabase(settings) as mongo:
            listings = mongo.db[settings.listings_collection]
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client: Optional[MongoClient] = None

    def connect(self) -> "MongoDatabase":
        """
        Create the client. pymongo connects lazily, so this does not wait
        for the server; the first command surfaces connectivity errors.

        Raises:
            MongoConnectionError: If the URI is malformed or unusable
        """
        if self._client is not None:
            return self
        try:
            self._client = MongoClient(
                self.settings.mongodb_uri,
                serverSelectionTimeoutMS=self.settings.mongodb_server_selection_timeout_ms,
                socketTimeoutMS=self.settings.mongodb_socket_timeout_ms,
                appname="listing-search",
            )
        except (ConfigurationError, ValueError) as e:
            raise MongoConnectionError(f"Failed to create MongoDB client: {e}") from e
        logger.info("MongoDB client created", database=self.settings.mongodb_database)
        return self

    def close(self) -> None:
        """Close the client if open. Safe to call more than once."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("MongoDB client closed")

    @property
    def is_open(self) -> bool:
        return self._client is not None

    @property
    def db(self) -> Database:
        if self._client is None:
            raise MongoConnectionError("MongoDB client is not connected")
        return self._client[self.settings.mongodb_database]

    def ping(self) -> Dict[str, Any]:
        """
        Run the server `ping` command.

        Returns:
            Dict with "status" ("connected", "not_connected" or "error") and
            an optional "error" message.
        """
        if self._client is None:
            return {"status": "not_connected", "error": None}
        try:
            self.db.command("ping")
            return {"status": "connected", "error": None}
        except PyMongoError as e:
            return {"status": "error", "error": str(e)}

    def __enter__(self) -> "MongoDatabase":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# For dependency injection in FastAPI
def get_database(request: Request) -> MongoDatabase:
    """
    FastAPI dependency returning the MongoDatabase opened by the lifespan.

    Usage:
        @router.get("/items")
        def get_items(mongo: MongoDatabase = Depends(get_database)):
            ...

    Raises:
        MongoConnectionError: If the application has no open database
    """
    mongo = getattr(request.app.state, "mongo", None)
    if mongo is None:
        raise MongoConnectionError("Application has no MongoDB client")
    return mongo
