from typing import Any, Optional

import structlog

from database import Database, serialize, write_result
from errors import Conflict, NotFound
from schemas import NOT_ADVERTISED, Medicine, MedicineUpdate, PromotionStatus

logger = structlog.get_logger()


class Catalog:
    """Medicine listings: pricing and promotion flags, owned per seller."""

    def __init__(self, database: Database):
        self.database = database
        self.medicines = database["medicine"]

    async def create_listing(self, medicine: Medicine, seller: str) -> dict[str, Any]:
        if await self.medicines.find_one({"name": medicine.name}):
            raise Conflict("medicine already exists")
        data = medicine.model_dump()
        data.update({"seller_email": seller, "promotion_status": NOT_ADVERTISED})
        result = await self.database.create_document("medicine", data)
        logger.info("listing_created", name=medicine.name, seller=seller)
        return write_result(result)

    async def get_listing(self, name: str) -> Optional[dict[str, Any]]:
        return serialize(await self.medicines.find_one({"name": name}))

    async def listings_for_seller(self, seller: str) -> list[dict[str, Any]]:
        return await self.database.get_documents("medicine", {"seller_email": seller})

    async def unit_price(self, name: str) -> float:
        """Canonical unit price, read fresh on every call."""
        doc = await self.medicines.find_one({"name": name}, {"price": 1})
        if doc is None:
            raise NotFound("medicine not found")
        return doc["price"]

    async def update_listing(self, name: str, seller: str, changes: MedicineUpdate) -> dict[str, Any]:
        updates = changes.model_dump(exclude_none=True)
        result = await self.medicines.update_one(
            {"name": name, "seller_email": seller}, {"$set": updates}
        )
        if result.matched_count == 0:
            raise NotFound("medicine not found")
        logger.info("listing_updated", name=name, fields=sorted(updates))
        return write_result(result)

    async def set_promotion(self, name: str, status: PromotionStatus):
        return await self.medicines.update_one(
            {"name": name}, {"$set": {"promotion_status": status}}
        )

    async def delete_listing(self, name: str, seller: str) -> dict[str, Any]:
        # Listing first, then its promotion records; no rollback between steps.
        result = await self.medicines.delete_one({"name": name, "seller_email": seller})
        if result.deleted_count == 0:
            raise NotFound("medicine not found")
        await self.database["slider"].delete_one({"name": name})
        await self.database["advertisement"].delete_one({"name": name})
        logger.info("listing_deleted", name=name, seller=seller)
        return write_result(result)
