"""Read-side documents built from an Order: detail, tracking, invoice and receipt.

Invoices and receipts are plain text; turning them into PDFs is left to the
consumer.
"""

from ordering.order.order import Order, allowed_transitions
from ordering.shared.serialization import load_list


def _iso(value):
    return value.isoformat() if value else None


def _money(amount) -> str:
    return f"{float(amount or 0.0):.2f}"


def order_items(order: Order) -> list[dict]:
    return [
        {
            "item_id": str(item.id),
            "product_id": str(item.product_id),
            "product_name": item.product_name,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "total_price": item.total_price,
            "customization": load_list(item.customization),
            "add_on_ids": load_list(item.add_on_ids),
            "notes": item.notes,
        }
        for item in order.items
    ]


def order_history(order: Order) -> list[dict]:
    return [
        {
            "sequence": entry.sequence,
            "status": entry.status,
            "changed_at": _iso(entry.changed_at),
            "changed_by": entry.changed_by,
            "notes": entry.notes,
        }
        for entry in order.history()
    ]


def order_detail(order: Order) -> dict:
    """Customer-facing view of an order."""
    pricing = order.pricing
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "user_id": str(order.user_id),
        "store_id": str(order.store_id),
        "status": order.status,
        "items": order_items(order),
        "subtotal": pricing.subtotal,
        "tax": pricing.tax,
        "delivery_fee": pricing.delivery_fee,
        "discount": pricing.discount,
        "total": pricing.total,
        "coupon_code": order.coupon_code,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "delivery_address": order.delivery_address,
        "notes": order.notes,
        "rating": order.rating.score if order.rating else None,
        "review": order.review,
        "cancellation_reason": order.cancellation_reason,
        "cancelled_by": order.cancelled_by,
        "refund_amount": order.refund_amount,
        "refund_status": order.refund_status,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


def order_tracking(order: Order) -> dict:
    """Where the order is now, how it got there and what can happen next."""
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "history": order_history(order),
        "next_statuses": sorted(status.value for status in allowed_transitions(order.status)),
        "estimated_ready_time": _iso(order.estimated_ready_time),
        "actual_ready_time": _iso(order.actual_ready_time),
        "picked_up_at": _iso(order.picked_up_at),
        "cancelled_at": _iso(order.cancelled_at),
        "driver_id": str(order.driver_id) if order.driver_id else None,
    }


def _document_lines(title, order: Order) -> list[str]:
    pricing = order.pricing
    lines = [
        title,
        f"Order: {order.order_number}",
        f"Date: {order.created_at:%Y-%m-%d %H:%M}" if order.created_at else "Date: -",
        f"Status: {order.status}",
        "",
    ]
    for item in order.items:
        lines.append(
            f"{item.quantity} x {item.product_name} @ {_money(item.unit_price)} = {_money(item.total_price)}"
        )
    lines += [
        "",
        f"Subtotal: {_money(pricing.subtotal)}",
        f"Tax: {_money(pricing.tax)}",
        f"Delivery fee: {_money(pricing.delivery_fee)}",
    ]
    if pricing.discount:
        coupon = f" ({order.coupon_code})" if order.coupon_code else ""
        lines.append(f"Discount{coupon}: -{_money(pricing.discount)}")
    lines += [
        f"Total: {_money(pricing.total)}",
        f"Payment: {order.payment_method} ({order.payment_status})",
    ]
    if order.refund_status:
        lines.append(f"Refund: {_money(order.refund_amount)} ({order.refund_status})")
    return lines


def render_invoice(order: Order) -> str:
    return "\n".join(_document_lines("INVOICE", order)) + "\n"


def render_receipt(order: Order) -> str:
    """Store copy of the invoice, with driver and internal notes."""
    lines = _document_lines("RECEIPT", order)
    lines.append(f"Customer: {order.user_id}")
    if order.delivery_address:
        lines.append(f"Deliver to: {order.delivery_address}")
    if order.driver_id:
        lines.append(f"Driver: {order.driver_id}")
    if order.internal_notes:
        lines += ["", "Internal notes:", order.internal_notes]
    return "\n".join(lines) + "\n"
