"""
Promotion coordination across the medicine, advertisement and slider
collections.

A slider entry existing for a medicine name is what "advertised" means; the
``promotion_status`` flags on the medicine and its advertisement request
mirror it. The toggle writes the flags first and the slider last, with no
lock and no rollback: a failure part-way, or two toggles racing on the same
name, can leave the flags and the slider disagreeing. Callers only ever see
the result of the final slider write.
"""
from typing import Any

import structlog

from catalog import Catalog
from database import Database, write_result
from errors import Conflict, NotFound
from schemas import ADVERTISED, NOT_ADVERTISED, Advertisement, Slider

logger = structlog.get_logger()


class PromotionCoordinator:
    def __init__(self, database: Database, catalog: Catalog):
        self.database = database
        self.catalog = catalog
        self.advertisements = database["advertisement"]
        self.slides = database["slider"]

    async def request_advertisement(self, request: Advertisement, seller: str) -> dict[str, Any]:
        if await self.advertisements.find_one({"name": request.name}):
            raise Conflict("advertisement already requested")
        data = request.model_dump()
        data.update({"submitted_by": seller, "promotion_status": NOT_ADVERTISED})
        result = await self.database.create_document("advertisement", data)
        logger.info("advertisement_requested", name=request.name, seller=seller)
        return write_result(result)

    async def advertisement_requests(self) -> list[dict[str, Any]]:
        return await self.database.get_documents("advertisement")

    async def active_slides(self) -> list[dict[str, Any]]:
        return await self.database.get_documents("slider")

    async def toggle(self, name: str, payload: Slider) -> dict[str, Any]:
        if await self.slides.find_one({"name": name}):
            return await self._demote(name)
        return await self._promote(name, payload)

    async def _demote(self, name: str) -> dict[str, Any]:
        await self.catalog.set_promotion(name, NOT_ADVERTISED)
        await self.advertisements.update_one(
            {"name": name}, {"$set": {"promotion_status": NOT_ADVERTISED}}
        )
        result = await self.slides.delete_one({"name": name})
        logger.info("promotion_demoted", name=name)
        return write_result(result)

    async def _promote(self, name: str, payload: Slider) -> dict[str, Any]:
        if await self.catalog.get_listing(name) is None:
            raise NotFound("medicine not found")
        await self.catalog.set_promotion(name, ADVERTISED)
        ad = await self.advertisements.update_one(
            {"name": name}, {"$set": {"promotion_status": ADVERTISED}}
        )
        if ad.matched_count == 0:
            logger.warning("advertisement_request_missing", name=name)
        data = payload.model_dump()
        data["name"] = name
        result = await self.database.create_document("slider", data)
        logger.info("promotion_promoted", name=name)
        return write_result(result)
