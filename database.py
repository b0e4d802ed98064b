from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from errors import StoreUnavailable

logger = structlog.get_logger()

# Business keys that must stay unique per collection.
UNIQUE_INDEXES: dict[str, list[tuple[str, int]]] = {
    "medicine": [("name", ASCENDING)],
    "advertisement": [("name", ASCENDING)],
    "slider": [("name", ASCENDING)],
    "cart": [("name", ASCENDING), ("email", ASCENDING)],
    "purchase": [("transaction_id", ASCENDING)],
}


class Database:
    """Storage client handed to every component at construction.

    The underlying Motor client pools connections; one instance is opened at
    process start and closed at shutdown.
    """

    def __init__(self, client: Any, name: str):
        self.client = client
        self.db = client[name]

    @classmethod
    def connect(cls, settings) -> "Database":
        client = AsyncIOMotorClient(settings.DATABASE_URL)
        logger.info("database_opened", name=settings.DATABASE_NAME)
        return cls(client, settings.DATABASE_NAME)

    def close(self) -> None:
        self.client.close()
        logger.info("database_closed")

    def __getitem__(self, collection_name: str):
        return self.db[collection_name]

    async def ping(self) -> None:
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            logger.error("database_ping_failed", error=str(e))
            raise StoreUnavailable() from e

    async def ensure_indexes(self) -> None:
        for collection_name, keys in UNIQUE_INDEXES.items():
            await self.db[collection_name].create_index(keys, unique=True)

    async def create_document(self, collection_name: str, data: dict[str, Any]):
        now = datetime.now(timezone.utc)
        data_with_meta = {**data, "created_at": now, "updated_at": now}
        return await self.db[collection_name].insert_one(data_with_meta)

    async def get_documents(
        self,
        collection_name: str,
        filter_dict: Optional[dict[str, Any]] = None,
        sort: Optional[list[tuple[str, int]]] = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """Matching documents, at most `limit` of them; `limit=0` reads them all."""
        cursor = self.db[collection_name].find(filter_dict or {}, sort=sort, limit=limit)
        docs = []
        async for d in cursor:
            docs.append(serialize(d))
        return docs


def serialize(doc: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if doc is None:
        return None
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


def write_result(result) -> dict[str, Any]:
    """Plain summary of a pymongo write result, as returned to API callers."""
    out: dict[str, Any] = {"acknowledged": result.acknowledged}
    if hasattr(result, "inserted_id"):
        out["inserted_id"] = str(result.inserted_id)
    if hasattr(result, "matched_count"):
        out["matched_count"] = result.matched_count
        out["modified_count"] = result.modified_count
        if result.upserted_id is not None:
            out["upserted_id"] = str(result.upserted_id)
    if hasattr(result, "deleted_count"):
        out["deleted_count"] = result.deleted_count
    return out
