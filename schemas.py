"""
Database Schemas for the MediMarketHub marketplace

Each Pydantic model below maps to a MongoDB collection using the lowercase
class name as the collection name (e.g., Medicine -> "medicine",
CartItem -> "cart").

These schemas are used for validation at the API boundary and to keep the
collections consistent with one another.
"""
from typing import Literal, Optional, get_args

from pydantic import BaseModel, EmailStr, Field

PromotionStatus = Literal["advertised", "not-advertised"]
PaymentStatus = Literal["pending", "paid", "refunded", "failed"]

ADVERTISED: PromotionStatus = "advertised"
NOT_ADVERTISED: PromotionStatus = "not-advertised"
PAYMENT_STATUSES = frozenset(get_args(PaymentStatus))


# ---------------------------------------------------------------------------
# Principal
# ---------------------------------------------------------------------------
class User(BaseModel):
    """Authenticated caller, decoded from the access token."""

    email: EmailStr
    role: Literal["buyer", "seller", "admin"] = "buyer"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
class Medicine(BaseModel):
    name: str = Field(..., min_length=1, description="Unique business key")
    generic_name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    company: Optional[str] = None
    image: Optional[str] = None
    price: float = Field(..., ge=0)
    discount_percentage: float = Field(0, ge=0, le=100)


class MedicineUpdate(BaseModel):
    generic_name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    company: Optional[str] = None
    image: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CartItem(BaseModel):
    name: str = Field(..., min_length=1, description="Medicine name")
    seller_email: Optional[EmailStr] = None
    image: Optional[str] = None
    quantity: int = Field(1, ge=1)
    price: float = Field(..., ge=0, description="Running total for the line, not unit price")


# ---------------------------------------------------------------------------
# Promotion
# ---------------------------------------------------------------------------
class Advertisement(BaseModel):
    name: str = Field(..., min_length=1, description="Medicine name")
    image: Optional[str] = None
    description: Optional[str] = None


class Slider(BaseModel):
    image: Optional[str] = None
    description: Optional[str] = None


# ---------------------------------------------------------------------------
# Purchases
# ---------------------------------------------------------------------------
class Purchase(BaseModel):
    transaction_id: str = Field(..., min_length=1)
    seller_email: EmailStr
    total_amount: float = Field(..., ge=0)
    items: list[dict] = []  # denormalized snapshot of the cart lines
    currency: str = "usd"


class StatusUpdate(BaseModel):
    payment_status: str


class PaymentIntentRequest(BaseModel):
    price: float = Field(..., gt=0)


class Totals(BaseModel):
    total_amount: float = 0
    paid_amount: float = 0
    pending_amount: float = 0
