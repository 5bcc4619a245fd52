"""FastAPI routes for the Ordering domain — carts, checkout, orders and menu.

Callers identify themselves with the ``X-User-Id`` header and, for staff
endpoints, ``X-User-Role: admin``. Token verification happens upstream.
"""

import json
from dataclasses import dataclass
from datetime import datetime

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import PlainTextResponse
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddAddOnRequest,
    AddCartItemRequest,
    AddProductRequest,
    ApplyCouponRequest,
    AssignDriverRequest,
    CancelOrderRequest,
    ChangeAvailabilityRequest,
    ChangePriceRequest,
    CheckoutIdResponse,
    CreateCheckoutRequest,
    CreateCouponRequest,
    ExpireCheckoutsRequest,
    IdResponse,
    InternalNoteRequest,
    ItemIdResponse,
    OrderIdResponse,
    RateOrderRequest,
    RecordPaymentRequest,
    RegisterStoreRequest,
    StatusResponse,
    UpdateCartDetailsRequest,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
    ValidateCheckoutRequest,
)
from ordering.cart.cart import Cart, cart_lines, cart_summary
from ordering.cart.items import (
    AbandonCart,
    AddToCart,
    ClearCart,
    RemoveFromCart,
    UpdateCartDetails,
    UpdateCartQuantity,
    active_cart_or_fail,
)
from ordering.checkout.confirmation import ConfirmCheckout
from ordering.checkout.coupons import ApplyCoupon, RemoveCoupon
from ordering.checkout.creation import CreateCheckoutSession, ExpireCheckoutSessions
from ordering.checkout.delivery import delivery_charges
from ordering.checkout.session import CheckoutSession, session_view
from ordering.checkout.validation import ValidateCheckout
from ordering.exceptions import ForbiddenError
from ordering.menu.catalogue import Catalogue
from ordering.menu.management import (
    AddAddOn,
    AddProduct,
    ChangeAddOnAvailability,
    ChangeProductAvailability,
    ChangeProductPrice,
    CreateCoupon,
    DeactivateCoupon,
    RegisterStore,
)
from ordering.order.admin import AddInternalNote, AssignDriver
from ordering.order.cancellation import CancelOrder
from ordering.order.documents import order_detail, order_tracking, render_invoice, render_receipt
from ordering.order.order import Order
from ordering.order.payment import RecordPaymentResult
from ordering.order.rating import RateOrder
from ordering.order.reorder import Reorder
from ordering.order.status import UpdateOrderStatus
from ordering.projections.order_summary import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, list_orders, summary_view

ADMIN_ROLE = "admin"


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def get_caller(
    x_user_id: str = Header(...),
    x_user_role: str = Header("customer"),
) -> Caller:
    return Caller(user_id=x_user_id, role=x_user_role.lower())


def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_admin:
        raise ForbiddenError("Admin role required")
    return caller


def _order_for(order_id: str, caller: Caller) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    if not caller.is_admin:
        order.assert_owned_by(caller.user_id)
    return order


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.get("/me")
async def get_cart(caller: Caller = Depends(get_caller)) -> dict:
    cart = current_domain.repository_for(Cart).active_for(caller.user_id)
    return {
        **cart_summary(cart),
        "items": cart_lines(cart) if cart else [],
        "delivery_address": cart.delivery_address if cart else None,
        "notes": cart.notes if cart else None,
    }


@cart_router.get("/me/summary")
async def get_cart_summary(caller: Caller = Depends(get_caller)) -> dict:
    return cart_summary(current_domain.repository_for(Cart).active_for(caller.user_id))


@cart_router.post("/me/items", status_code=201, response_model=ItemIdResponse)
async def add_cart_item(body: AddCartItemRequest, caller: Caller = Depends(get_caller)) -> ItemIdResponse:
    command = AddToCart(
        user_id=caller.user_id,
        product_id=body.product_id,
        quantity=body.quantity,
        customization=json.dumps([choice.model_dump() for choice in body.customization]),
        add_on_ids=json.dumps(body.add_on_ids),
        notes=body.notes,
    )
    result = current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=result)


@cart_router.put("/me/items/{item_id}", response_model=StatusResponse)
async def update_cart_item(
    item_id: str, body: UpdateCartQuantityRequest, caller: Caller = Depends(get_caller)
) -> StatusResponse:
    command = UpdateCartQuantity(user_id=caller.user_id, item_id=item_id, new_quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/me/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(item_id: str, caller: Caller = Depends(get_caller)) -> StatusResponse:
    current_domain.process(RemoveFromCart(user_id=caller.user_id, item_id=item_id), asynchronous=False)
    return StatusResponse()


@cart_router.delete("/me", response_model=StatusResponse)
async def clear_cart(caller: Caller = Depends(get_caller)) -> StatusResponse:
    current_domain.process(ClearCart(user_id=caller.user_id), asynchronous=False)
    return StatusResponse()


@cart_router.put("/me/details", response_model=StatusResponse)
async def update_cart_details(body: UpdateCartDetailsRequest, caller: Caller = Depends(get_caller)) -> StatusResponse:
    command = UpdateCartDetails(
        user_id=caller.user_id,
        delivery_address=body.delivery_address,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.post("/me/abandon", response_model=StatusResponse)
async def abandon_cart(caller: Caller = Depends(get_caller)) -> StatusResponse:
    current_domain.process(AbandonCart(user_id=caller.user_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/validate")
async def validate_checkout(body: ValidateCheckoutRequest, caller: Caller = Depends(get_caller)) -> dict:
    command = ValidateCheckout(user_id=caller.user_id, delivery_address=body.delivery_address)
    return current_domain.process(command, asynchronous=False)


@checkout_router.get("/delivery-charges")
async def get_delivery_charges(delivery_address: str | None = None, caller: Caller = Depends(get_caller)) -> dict:
    cart = active_cart_or_fail(caller.user_id)
    store = Catalogue().find_store(cart.store_id)
    return delivery_charges(store, cart.pricing.subtotal, delivery_address or cart.delivery_address)


@checkout_router.post("", status_code=201, response_model=CheckoutIdResponse)
async def create_checkout(body: CreateCheckoutRequest, caller: Caller = Depends(get_caller)) -> CheckoutIdResponse:
    command = CreateCheckoutSession(
        user_id=caller.user_id,
        payment_method=body.payment_method,
        delivery_address=body.delivery_address,
        notes=body.notes,
        coupon_code=body.coupon_code,
    )
    result = current_domain.process(command, asynchronous=False)
    return CheckoutIdResponse(checkout_id=result)


@checkout_router.post("/expire")
async def expire_checkouts(body: ExpireCheckoutsRequest, caller: Caller = Depends(require_admin)) -> dict:
    expired = current_domain.process(ExpireCheckoutSessions(as_of=body.as_of), asynchronous=False)
    return {"expired": expired}


@checkout_router.get("/{checkout_id}")
async def get_checkout(checkout_id: str, caller: Caller = Depends(get_caller)) -> dict:
    session = current_domain.repository_for(CheckoutSession).get(checkout_id)
    session.assert_owned_by(caller.user_id)
    return session_view(session)


@checkout_router.post("/{checkout_id}/coupon", response_model=StatusResponse)
async def apply_coupon(checkout_id: str, body: ApplyCouponRequest, caller: Caller = Depends(get_caller)) -> StatusResponse:
    command = ApplyCoupon(checkout_id=checkout_id, user_id=caller.user_id, coupon_code=body.coupon_code)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@checkout_router.delete("/{checkout_id}/coupon", response_model=StatusResponse)
async def remove_coupon(checkout_id: str, caller: Caller = Depends(get_caller)) -> StatusResponse:
    current_domain.process(RemoveCoupon(checkout_id=checkout_id, user_id=caller.user_id), asynchronous=False)
    return StatusResponse()


@checkout_router.post("/{checkout_id}/confirm", status_code=201, response_model=OrderIdResponse)
async def confirm_checkout(checkout_id: str, caller: Caller = Depends(get_caller)) -> OrderIdResponse:
    result = current_domain.process(
        ConfirmCheckout(checkout_id=checkout_id, user_id=caller.user_id),
        asynchronous=False,
    )
    return OrderIdResponse(order_id=result)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("")
async def get_orders(
    status: str | None = None,
    store_id: str | None = None,
    user_id: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
) -> list[dict]:
    """Customers see their own orders; admins may filter by any user."""
    summaries = list_orders(
        user_id=user_id if caller.is_admin else caller.user_id,
        status=status,
        store_id=store_id,
        created_from=created_from,
        created_to=created_to,
        limit=limit,
        offset=offset,
    )
    return [summary_view(summary) for summary in summaries]


@order_router.get("/{order_id}")
async def get_order(order_id: str, caller: Caller = Depends(get_caller)) -> dict:
    return order_detail(_order_for(order_id, caller))


@order_router.get("/{order_id}/tracking")
async def get_order_tracking(order_id: str, caller: Caller = Depends(get_caller)) -> dict:
    return order_tracking(_order_for(order_id, caller))


@order_router.get("/{order_id}/invoice", response_class=PlainTextResponse)
async def get_invoice(order_id: str, caller: Caller = Depends(get_caller)) -> str:
    return render_invoice(_order_for(order_id, caller))


@order_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest, caller: Caller = Depends(get_caller)) -> StatusResponse:
    command = CancelOrder(order_id=order_id, user_id=caller.user_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/rate", response_model=StatusResponse)
async def rate_order(order_id: str, body: RateOrderRequest, caller: Caller = Depends(get_caller)) -> StatusResponse:
    command = RateOrder(order_id=order_id, user_id=caller.user_id, rating=body.rating, review=body.review)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/reorder")
async def reorder(order_id: str, caller: Caller = Depends(get_caller)) -> dict:
    return current_domain.process(Reorder(order_id=order_id, user_id=caller.user_id), asynchronous=False)


@order_router.put("/{order_id}/status")
async def update_order_status(
    order_id: str, body: UpdateOrderStatusRequest, caller: Caller = Depends(require_admin)
) -> dict:
    command = UpdateOrderStatus(
        order_id=order_id,
        new_status=body.status,
        notes=body.notes,
        changed_by=caller.role,
        expected_status=body.expected_status,
    )
    status = current_domain.process(command, asynchronous=False)
    return {"status": status}


@order_router.put("/{order_id}/payment")
async def record_payment(order_id: str, body: RecordPaymentRequest, caller: Caller = Depends(require_admin)) -> dict:
    command = RecordPaymentResult(
        order_id=order_id,
        payment_status=body.payment_status,
        payment_reference=body.payment_reference,
    )
    status = current_domain.process(command, asynchronous=False)
    return {"status": status}


@order_router.put("/{order_id}/driver", response_model=StatusResponse)
async def assign_driver(order_id: str, body: AssignDriverRequest, caller: Caller = Depends(require_admin)) -> StatusResponse:
    current_domain.process(AssignDriver(order_id=order_id, driver_id=body.driver_id), asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/internal-notes", response_model=StatusResponse)
async def add_internal_note(
    order_id: str, body: InternalNoteRequest, caller: Caller = Depends(require_admin)
) -> StatusResponse:
    command = AddInternalNote(order_id=order_id, note=body.note, author=caller.user_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.get("/{order_id}/receipt", response_class=PlainTextResponse)
async def get_receipt(order_id: str, caller: Caller = Depends(require_admin)) -> str:
    return render_receipt(current_domain.repository_for(Order).get(order_id))


# ---------------------------------------------------------------------------
# Menu Router (admin)
# ---------------------------------------------------------------------------
menu_router = APIRouter(prefix="/menu", tags=["menu"], dependencies=[Depends(require_admin)])


@menu_router.post("/stores", status_code=201, response_model=IdResponse)
async def register_store(body: RegisterStoreRequest) -> IdResponse:
    result = current_domain.process(RegisterStore(**body.model_dump()), asynchronous=False)
    return IdResponse(id=result)


@menu_router.post("/products", status_code=201, response_model=IdResponse)
async def add_product(body: AddProductRequest) -> IdResponse:
    command = AddProduct(
        store_id=body.store_id,
        name=body.name,
        base_price=body.base_price,
        customizations=json.dumps([c.model_dump() for c in body.customizations]),
        add_on_ids=json.dumps(body.add_on_ids),
        is_available=body.is_available,
    )
    result = current_domain.process(command, asynchronous=False)
    return IdResponse(id=result)


@menu_router.put("/products/{product_id}/price", response_model=StatusResponse)
async def change_product_price(product_id: str, body: ChangePriceRequest) -> StatusResponse:
    current_domain.process(ChangeProductPrice(product_id=product_id, new_price=body.new_price), asynchronous=False)
    return StatusResponse()


@menu_router.put("/products/{product_id}/availability", response_model=StatusResponse)
async def change_product_availability(product_id: str, body: ChangeAvailabilityRequest) -> StatusResponse:
    command = ChangeProductAvailability(product_id=product_id, is_available=body.is_available)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@menu_router.post("/add-ons", status_code=201, response_model=IdResponse)
async def add_add_on(body: AddAddOnRequest) -> IdResponse:
    result = current_domain.process(AddAddOn(**body.model_dump()), asynchronous=False)
    return IdResponse(id=result)


@menu_router.put("/add-ons/{add_on_id}/availability", response_model=StatusResponse)
async def change_add_on_availability(add_on_id: str, body: ChangeAvailabilityRequest) -> StatusResponse:
    command = ChangeAddOnAvailability(add_on_id=add_on_id, is_available=body.is_available)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@menu_router.post("/coupons", status_code=201, response_model=IdResponse)
async def create_coupon(body: CreateCouponRequest) -> IdResponse:
    result = current_domain.process(CreateCoupon(**body.model_dump()), asynchronous=False)
    return IdResponse(id=result)


@menu_router.delete("/coupons/{code}", response_model=StatusResponse)
async def deactivate_coupon(code: str) -> StatusResponse:
    current_domain.process(DeactivateCoupon(code=code), asynchronous=False)
    return StatusResponse()
