"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomizationChoice(BaseModel):
    customization_type: str
    option_id: str


class CustomizationSchema(BaseModel):
    customization_type: str
    options: list[dict] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    customization: list[CustomizationChoice] = Field(default_factory=list)
    add_on_ids: list[str] = Field(default_factory=list)
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "quantity": 2,
                    "customization": [{"customization_type": "size", "option_id": "large"}],
                    "add_on_ids": ["addon-cheese"],
                }
            ]
        }
    }


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


class UpdateCartDetailsRequest(BaseModel):
    delivery_address: str | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class ValidateCheckoutRequest(BaseModel):
    delivery_address: str | None = None


class CreateCheckoutRequest(BaseModel):
    payment_method: str = "card"
    delivery_address: str | None = None
    notes: str | None = None
    coupon_code: str | None = None


class ApplyCouponRequest(BaseModel):
    coupon_code: str


class ExpireCheckoutsRequest(BaseModel):
    as_of: datetime | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CancelOrderRequest(BaseModel):
    reason: str


class RateOrderRequest(BaseModel):
    rating: int
    review: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str
    notes: str | None = None
    expected_status: str | None = None


class RecordPaymentRequest(BaseModel):
    payment_status: str
    payment_reference: str | None = None


class AssignDriverRequest(BaseModel):
    driver_id: str


class InternalNoteRequest(BaseModel):
    note: str


# ---------------------------------------------------------------------------
# Menu Request Schemas
# ---------------------------------------------------------------------------
class RegisterStoreRequest(BaseModel):
    name: str
    delivery_fee: float = Field(ge=0, default=0.0)
    free_delivery_minimum: float | None = Field(ge=0, default=None)
    average_prep_time: int = Field(ge=1, default=15)


class AddProductRequest(BaseModel):
    store_id: str
    name: str
    base_price: float = Field(gt=0)
    customizations: list[CustomizationSchema] = Field(default_factory=list)
    add_on_ids: list[str] = Field(default_factory=list)
    is_available: bool = True


class ChangePriceRequest(BaseModel):
    new_price: float = Field(gt=0)


class ChangeAvailabilityRequest(BaseModel):
    is_available: bool


class AddAddOnRequest(BaseModel):
    name: str
    price: float = Field(ge=0)
    is_available: bool = True


class CreateCouponRequest(BaseModel):
    code: str
    discount_type: str = "fixed"
    value: float = Field(ge=0)
    minimum_order: float = Field(ge=0, default=0.0)
    max_discount: float | None = None
    expires_at: datetime | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ItemIdResponse(BaseModel):
    item_id: str


class CheckoutIdResponse(BaseModel):
    checkout_id: str


class OrderIdResponse(BaseModel):
    order_id: str


class IdResponse(BaseModel):
    id: str


class StatusResponse(BaseModel):
    status: str = "ok"
