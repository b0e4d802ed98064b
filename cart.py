from typing import Any

import structlog
from bson import ObjectId

from catalog import Catalog
from database import Database, write_result
from errors import Conflict, InvalidState, NotFound
from schemas import CartItem

logger = structlog.get_logger()


class CartLedger:
    """Per-buyer cart lines keyed by (medicine name, buyer email).

    ``price`` on a line is the running total, so every quantity change adds or
    subtracts the listing's current unit price. Both fields move in a single
    ``$inc`` so concurrent adjustments never lose an update.
    """

    def __init__(self, database: Database, catalog: Catalog):
        self.database = database
        self.catalog = catalog
        self.lines = database["cart"]

    async def add_line(self, item: CartItem, buyer: str) -> dict[str, Any]:
        if await self.lines.find_one({"name": item.name, "email": buyer}):
            raise Conflict("medicine already in cart")
        data = item.model_dump()
        data["email"] = buyer
        result = await self.database.create_document("cart", data)
        logger.info("cart_line_added", name=item.name, buyer=buyer)
        return write_result(result)

    async def lines_for_buyer(self, buyer: str) -> list[dict[str, Any]]:
        return await self.database.get_documents("cart", {"email": buyer}, limit=0)

    async def increase_quantity(self, name: str, buyer: str) -> dict[str, Any]:
        unit_price = await self.catalog.unit_price(name)
        result = await self.lines.update_one(
            {"name": name, "email": buyer},
            {"$inc": {"quantity": 1, "price": unit_price}},
        )
        if result.matched_count == 0:
            raise NotFound("cart item not found")
        return write_result(result)

    async def decrease_quantity(self, name: str, buyer: str) -> dict[str, Any]:
        unit_price = await self.catalog.unit_price(name)
        line = await self.lines.find_one({"name": name, "email": buyer})
        if line is None:
            raise NotFound("cart item not found")
        if round(line["price"], 2) <= round(unit_price, 2) or line["quantity"] <= 1:
            raise InvalidState("price cannot go below its original value")
        result = await self.lines.update_one(
            {"_id": line["_id"]},
            {"$inc": {"quantity": -1, "price": -unit_price}},
        )
        return write_result(result)

    async def remove_line(self, line_id: ObjectId, buyer: str) -> dict[str, Any]:
        result = await self.lines.delete_one({"_id": line_id, "email": buyer})
        return write_result(result)

    async def clear_for_buyer(self, buyer: str) -> dict[str, Any]:
        result = await self.lines.delete_many({"email": buyer})
        logger.info("cart_cleared", buyer=buyer, deleted=result.deleted_count)
        return write_result(result)
