"""Order creation: draft validation, command and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, PaymentStatus

_REQUIRED_ADDRESS_FIELDS = ("state", "district", "place", "house_address")

# One minor currency unit
_AMOUNT_TOLERANCE = 0.01


def validate_order_draft(
    customer: dict,
    address: dict,
    items: list,
    total_amount,
    payment_status,
) -> None:
    """Reject a checkout draft before anything is persisted.

    Every problem is reported at once, keyed by the offending field, so the
    caller can highlight all of them in one round trip.
    """
    errors: dict[str, list[str]] = {}

    customer = customer or {}
    if not str(customer.get("name") or "").strip():
        errors["customer.name"] = ["Customer name is required"]
    if not str(customer.get("mobile") or "").strip():
        errors["customer.mobile"] = ["Customer mobile is required"]

    address = address or {}
    for field in _REQUIRED_ADDRESS_FIELDS:
        if not str(address.get(field) or "").strip():
            errors[f"address.{field}"] = [f"Address {field.replace('_', ' ')} is required"]

    if not items:
        errors["items"] = ["An order needs at least one item"]
    else:
        for index, item in enumerate(items):
            if not item.get("product_id"):
                errors[f"items[{index}].product_id"] = ["Product id is required"]
            if not str(item.get("name") or "").strip():
                errors[f"items[{index}].name"] = ["Item name is required"]
            quantity = item.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                errors[f"items[{index}].quantity"] = ["Quantity must be a whole number of at least 1"]
            price = item.get("price")
            if not isinstance(price, (int, float)) or isinstance(price, bool) or price < 0:
                errors[f"items[{index}].price"] = ["Price must be a non-negative number"]

    if not isinstance(total_amount, (int, float)) or isinstance(total_amount, bool) or total_amount <= 0:
        errors["total_amount"] = ["Total amount must be positive"]
    elif items and "items" not in errors and not any(k.startswith("items[") for k in errors):
        subtotal = sum(item["price"] * item["quantity"] for item in items)
        if total_amount > subtotal + _AMOUNT_TOLERANCE:
            errors["total_amount"] = [f"Total amount {total_amount} exceeds the items subtotal {round(subtotal, 2)}"]

    if payment_status not in (PaymentStatus.PENDING.value, PaymentStatus.PAID.value):
        errors["payment_status"] = ["Payment status at creation must be pending or paid"]

    if errors:
        raise ValidationError(errors)


@ordering.command(part_of="Order")
class PlaceOrder:
    """Persist a validated checkout as a new order."""

    customer_name = String(max_length=255)
    customer_mobile = String(max_length=20)
    customer_email = String(max_length=255)
    user_id = String(max_length=255)
    address = Text()  # JSON: address dict
    items = Text()  # JSON: list of item dicts
    total_amount = Float()
    payment_status = String(max_length=20, default=PaymentStatus.PENDING.value)
    payment_reference = String(max_length=255)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        address = json.loads(command.address) if isinstance(command.address, str) else command.address
        items = json.loads(command.items) if isinstance(command.items, str) else command.items

        validate_order_draft(
            customer={"name": command.customer_name, "mobile": command.customer_mobile},
            address=address,
            items=items,
            total_amount=command.total_amount,
            payment_status=command.payment_status,
        )

        order = Order.create(
            customer_name=command.customer_name.strip(),
            customer_mobile=command.customer_mobile.strip(),
            customer_email=command.customer_email or None,
            user_id=command.user_id or None,
            address={
                "state": address["state"],
                "district": address["district"],
                "place": address["place"],
                "house_address": address["house_address"],
                "landmark": address.get("landmark") or None,
                "pincode": address.get("pincode") or None,
            },
            items_data=[
                {
                    "product_id": str(item["product_id"]),
                    "name": item["name"],
                    "unit_price": float(item["price"]),
                    "quantity": item["quantity"],
                    "size": item.get("size") or None,
                    "note": item.get("note") or None,
                    "image": item.get("image") or None,
                }
                for item in items
            ],
            total_amount=float(command.total_amount),
            payment_status=command.payment_status,
            payment_reference=command.payment_reference or None,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
