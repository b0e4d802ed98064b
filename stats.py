from typing import Any, Optional

from database import Database
from schemas import Totals


class StatisticsAggregator:
    """Read-only pending/paid/total sums over the purchase ledger."""

    def __init__(self, database: Database):
        self.purchases = database["purchase"]

    async def seller_totals(self, seller: str) -> Totals:
        return await self._totals({"seller_email": seller})

    async def marketplace_totals(self) -> Totals:
        return await self._totals()

    async def _totals(self, match: Optional[dict[str, Any]] = None) -> Totals:
        pipeline = [
            {"$match": match or {}},
            {"$group": {
                "_id": None,
                "total_amount": {"$sum": "$total_amount"},
                "paid_amount": {"$sum": {
                    "$cond": [{"$eq": ["$payment_status", "paid"]}, "$total_amount", 0]
                }},
                "pending_amount": {"$sum": {
                    "$cond": [{"$eq": ["$payment_status", "pending"]}, "$total_amount", 0]
                }},
            }},
        ]
        agg = await self.purchases.aggregate(pipeline).to_list(length=None)
        if not agg:
            return Totals()
        base = agg[0]
        return Totals(
            total_amount=base.get("total_amount") or 0,
            paid_amount=base.get("paid_amount") or 0,
            pending_amount=base.get("pending_amount") or 0,
        )
