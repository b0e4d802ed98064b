from typing import Any, Optional

import stripe
import structlog
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from cart import CartLedger
from database import Database, serialize, write_result
from errors import Conflict, InvalidState, NotFound
from schemas import PAYMENT_STATUSES, Purchase

logger = structlog.get_logger()


class CheckoutOrchestrator:
    """Settles a cart into the append-only purchase ledger.

    The purchase is inserted before the cart is cleared. If clearing fails the
    purchase stands and the buyer keeps stale cart lines; nothing is rolled
    back.
    """

    def __init__(self, database: Database, cart: CartLedger):
        self.database = database
        self.cart = cart
        self.purchases = database["purchase"]

    async def finalize_purchase(self, purchase: Purchase, buyer: str) -> dict[str, Any]:
        if await self.purchases.find_one({"transaction_id": purchase.transaction_id}):
            raise Conflict("transaction already recorded")
        data = purchase.model_dump()
        data.update({"buyer_email": buyer, "payment_status": "pending"})
        result = await self.database.create_document("purchase", data)
        logger.info(
            "purchase_recorded",
            transaction_id=purchase.transaction_id,
            buyer=buyer,
            total_amount=purchase.total_amount,
        )
        try:
            await self.cart.clear_for_buyer(buyer)
        except PyMongoError as e:
            logger.warning(
                "cart_clear_failed",
                transaction_id=purchase.transaction_id,
                buyer=buyer,
                error=str(e),
            )
        return write_result(result)

    async def update_status(self, transaction_id: str, status: str) -> dict[str, Any]:
        # Any known status is accepted in either direction; unknown strings are typos.
        if status not in PAYMENT_STATUSES:
            raise InvalidState(f"unknown payment status: {status}")
        result = await self.purchases.update_one(
            {"transaction_id": transaction_id}, {"$set": {"payment_status": status}}
        )
        if result.matched_count == 0:
            raise NotFound("purchase not found")
        logger.info("purchase_status_set", transaction_id=transaction_id, status=status)
        return write_result(result)

    async def get_purchase(self, transaction_id: str, buyer: Optional[str] = None) -> Optional[dict[str, Any]]:
        """Purchase by transaction id; scoped to one buyer unless `buyer` is None."""
        query = {"transaction_id": transaction_id}
        if buyer is not None:
            query["buyer_email"] = buyer
        return serialize(await self.purchases.find_one(query))

    async def purchases_for_buyer(self, buyer: str) -> list[dict[str, Any]]:
        return await self.database.get_documents(
            "purchase", {"buyer_email": buyer}, sort=[("created_at", DESCENDING)], limit=0
        )


def create_payment_intent(amount: float, currency: str = "usd") -> dict[str, Any]:
    if not stripe.api_key:
        # Demo secret when Stripe key not set
        return {"client_secret": "demo_secret", "demo": True}
    intent = stripe.PaymentIntent.create(
        amount=int(round(amount * 100)),
        currency=currency,
        payment_method_types=["card"],
    )
    return {"client_secret": intent.client_secret}
