"""Mapping from an order summary to the courier's ad-hoc order payload."""

from datetime import datetime

# Package size is not tracked per product; every parcel is declared with these
DEFAULT_PACKAGE = {
    "length": 10,
    "breadth": 10,
    "height": 10,
    "weight": 0.5,
}

DEFAULT_PINCODE = "000000"
DEFAULT_COUNTRY = "India"


def split_name(full_name: str) -> tuple[str, str]:
    """Split a full name into first name and the rest."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def _order_date(created_at) -> str:
    if isinstance(created_at, str):
        created_at = datetime.fromisoformat(created_at)
    return created_at.strftime("%Y-%m-%d %H:%M")


def build_shipment_payload(
    order: dict,
    pickup_location: str,
    fallback_email: str,
    country: str = DEFAULT_COUNTRY,
) -> dict:
    """Flatten an order summary into the courier's ad-hoc order shape.

    Shipping is always billing. Orders already paid online ship as
    ``Prepaid``; everything else is collected on delivery.
    """
    customer = order["customer"]
    address = order["address"]
    first_name, last_name = split_name(customer["name"])
    address_line_2 = ", ".join(part for part in (address.get("landmark"), address.get("district")) if part)

    return {
        "order_id": order["id"],
        "order_date": _order_date(order["created_at"]),
        "pickup_location": pickup_location,
        "billing_customer_name": first_name,
        "billing_last_name": last_name,
        "billing_address": address["house_address"],
        "billing_address_2": address_line_2,
        "billing_city": address["place"],
        "billing_pincode": address.get("pincode") or DEFAULT_PINCODE,
        "billing_state": address["state"],
        "billing_country": country,
        "billing_email": customer.get("email") or fallback_email,
        "billing_phone": customer["mobile"],
        "shipping_is_billing": True,
        "order_items": [
            {
                "name": item["name"],
                "sku": item["product_id"],
                "units": item["quantity"],
                "selling_price": str(item["unit_price"]),
            }
            for item in order["items"]
        ],
        "payment_method": "Prepaid" if order["payment_status"] == "paid" else "COD",
        "sub_total": order["total_amount"],
        **DEFAULT_PACKAGE,
    }
