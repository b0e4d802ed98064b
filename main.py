from contextlib import asynccontextmanager
from typing import Any, Optional

import stripe
import structlog
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.exceptions import HTTPException

from auth import get_current_user, require_role
from cart import CartLedger
from catalog import Catalog
from checkout import CheckoutOrchestrator, create_payment_intent
from database import Database
from errors import Conflict, InvalidState, MarketplaceError, StoreUnavailable
from promotion import PromotionCoordinator
from schemas import (
    Advertisement,
    CartItem,
    Medicine,
    MedicineUpdate,
    PaymentIntentRequest,
    Purchase,
    Slider,
    StatusUpdate,
    Totals,
    User,
)
from settings import settings
from stats import StatisticsAggregator

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(0),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
)

logger = structlog.get_logger()

stripe.api_key = settings.STRIPE_SECRET_KEY


# ---------------------------- Wiring ----------------------------------------
def wire(app: FastAPI, database: Database) -> None:
    """Build every component around the one shared storage client."""
    catalog = Catalog(database)
    cart = CartLedger(database, catalog)
    app.state.database = database
    app.state.catalog = catalog
    app.state.cart = cart
    app.state.promotion = PromotionCoordinator(database, catalog)
    app.state.checkout = CheckoutOrchestrator(database, cart)
    app.state.stats = StatisticsAggregator(database)


def create_app(database: Optional[Database] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Only a client opened here is closed here; an injected one belongs to the caller.
        owned = None
        if database is None:
            owned = Database.connect(settings)
            wire(app, owned)
        await app.state.database.ensure_indexes()
        yield
        if owned is not None:
            owned.close()

    app = FastAPI(title="MediMarketHub API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if database is not None:
        wire(app, database)

    register_error_handlers(app)
    register_routes(app)
    return app


# ---------------------------- Errors ----------------------------------------
def error_response(exc: MarketplaceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MarketplaceError)
    async def marketplace_error(request: Request, exc: MarketplaceError):
        logger.info("request_rejected", path=request.url.path, error=type(exc).__name__, message=exc.message)
        return error_response(exc)

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key(request: Request, exc: DuplicateKeyError):
        return error_response(Conflict())

    @app.exception_handler(PyMongoError)
    async def store_error(request: Request, exc: PyMongoError):
        logger.error("store_call_failed", path=request.url.path, error=str(exc))
        return error_response(StoreUnavailable())

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


# ---------------------------- Utilities -------------------------------------
def oid(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise InvalidState("invalid id")


def components(request: Request):
    return request.app.state


seller_only = require_role("seller", "admin")
admin_only = require_role("admin")


# ---------------------------- Routes ----------------------------------------
def register_routes(app: FastAPI) -> None:

    @app.get("/")
    def read_root():
        return {"message": "Welcome to MediMarketHub's server!"}

    @app.get("/test")
    async def test_database(state=Depends(components)):
        await state.database.ping()
        return {"backend": "running", "database": "connected"}

    # ------------------------------ Catalog ---------------------------------
    @app.post("/medicine")
    async def create_medicine(medicine: Medicine, user: User = Depends(seller_only), state=Depends(components)):
        return await state.catalog.create_listing(medicine, user.email)

    @app.get("/medicine/{name}")
    async def get_medicine(name: str, user: User = Depends(get_current_user), state=Depends(components)):
        return await state.catalog.get_listing(name)

    @app.get("/seller/medicine")
    async def seller_medicines(user: User = Depends(seller_only), state=Depends(components)):
        return await state.catalog.listings_for_seller(user.email)

    @app.patch("/medicine/{name}")
    async def update_medicine(name: str, changes: MedicineUpdate, user: User = Depends(seller_only), state=Depends(components)):
        return await state.catalog.update_listing(name, user.email, changes)

    @app.delete("/medicine/{name}")
    async def delete_medicine(name: str, user: User = Depends(seller_only), state=Depends(components)):
        return await state.catalog.delete_listing(name, user.email)

    # ------------------------------ Cart ------------------------------------
    @app.post("/cart")
    async def add_to_cart(item: CartItem, user: User = Depends(get_current_user), state=Depends(components)):
        return await state.cart.add_line(item, user.email)

    @app.get("/cart")
    async def my_cart(user: User = Depends(get_current_user), state=Depends(components)) -> list[dict[str, Any]]:
        return await state.cart.lines_for_buyer(user.email)

    @app.patch("/cart/{name}/increase")
    async def increase_quantity(name: str, user: User = Depends(get_current_user), state=Depends(components)):
        return await state.cart.increase_quantity(name, user.email)

    @app.patch("/cart/{name}/decrease")
    async def decrease_quantity(name: str, user: User = Depends(get_current_user), state=Depends(components)):
        return await state.cart.decrease_quantity(name, user.email)

    @app.delete("/cart/item/{line_id}")
    async def remove_cart_item(line_id: str, user: User = Depends(get_current_user), state=Depends(components)):
        return await state.cart.remove_line(oid(line_id), user.email)

    @app.delete("/cart")
    async def clear_cart(user: User = Depends(get_current_user), state=Depends(components)):
        return await state.cart.clear_for_buyer(user.email)

    # ------------------------------ Promotion -------------------------------
    @app.post("/advertisement")
    async def request_advertisement(request: Advertisement, user: User = Depends(seller_only), state=Depends(components)):
        return await state.promotion.request_advertisement(request, user.email)

    @app.get("/advertisement")
    async def list_advertisements(user: User = Depends(admin_only), state=Depends(components)):
        return await state.promotion.advertisement_requests()

    @app.get("/slider")
    async def list_slides(state=Depends(components)):
        return await state.promotion.active_slides()

    @app.post("/slider/{name}")
    async def toggle_slide(name: str, payload: Slider, user: User = Depends(admin_only), state=Depends(components)):
        return await state.promotion.toggle(name, payload)

    # ------------------------------ Checkout --------------------------------
    @app.post("/create-payment-intent")
    def payment_intent(body: PaymentIntentRequest, user: User = Depends(get_current_user)):
        return create_payment_intent(body.price)

    @app.post("/purchase")
    async def finalize_purchase(purchase: Purchase, user: User = Depends(get_current_user), state=Depends(components)):
        return await state.checkout.finalize_purchase(purchase, user.email)

    @app.get("/purchase")
    async def my_purchases(user: User = Depends(get_current_user), state=Depends(components)):
        return await state.checkout.purchases_for_buyer(user.email)

    @app.get("/purchase/{transaction_id}")
    async def get_purchase(transaction_id: str, user: User = Depends(get_current_user), state=Depends(components)):
        buyer = None if user.role == "admin" else user.email
        return await state.checkout.get_purchase(transaction_id, buyer)

    @app.patch("/purchase/{transaction_id}")
    async def update_purchase_status(transaction_id: str, body: StatusUpdate, user: User = Depends(admin_only), state=Depends(components)):
        return await state.checkout.update_status(transaction_id, body.payment_status)

    # ------------------------------ Statistics ------------------------------
    @app.get("/seller/stats", response_model=Totals)
    async def seller_stats(user: User = Depends(seller_only), state=Depends(components)):
        return await state.stats.seller_totals(user.email)

    @app.get("/admin/stats", response_model=Totals)
    async def admin_stats(user: User = Depends(admin_only), state=Depends(components)):
        return await state.stats.marketplace_totals()


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
