"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Request fields the domain validates itself are
optional here, so a bad draft comes back as one field-keyed 400 rather than
a schema error.
"""

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomerSchema(BaseModel):
    name: str | None = None
    mobile: str | None = None
    email: str | None = None


class AddressSchema(BaseModel):
    state: str | None = None
    district: str | None = None
    place: str | None = None
    house_address: str | None = None
    landmark: str | None = None
    pincode: str | None = None


class DraftItemSchema(BaseModel):
    product_id: str | None = None
    name: str | None = None
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    size: str | None = None
    note: str | None = None
    image: str | None = None


class OrderItemSchema(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int
    size: str | None = None
    note: str | None = None
    image: str | None = None


class PriceBreakdownSchema(BaseModel):
    base: float
    tax_component: float
    discount: float
    final_total: float


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    customer: CustomerSchema = Field(default_factory=CustomerSchema)
    address: AddressSchema = Field(default_factory=AddressSchema)
    items: list[DraftItemSchema] = Field(default_factory=list)
    payment_method: str = "cod"
    user_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer": {"name": "Asha Verma", "mobile": "9876543210", "email": "asha@example.com"},
                    "address": {
                        "state": "Kerala",
                        "district": "Ernakulam",
                        "place": "Kochi",
                        "house_address": "12 MG Road",
                        "pincode": "682001",
                    },
                    "items": [{"product_id": "prod-001", "name": "Silk Saree", "price": 1299.0, "quantity": 1}],
                    "payment_method": "online",
                }
            ]
        }
    }


class CompleteCheckoutRequest(BaseModel):
    """Completion signal; gateway-specific fields pass through untouched."""

    model_config = ConfigDict(extra="allow")

    outcome: str = "success"
    reason: str | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class UpdateTrackingRequest(BaseModel):
    status: str
    tracking_id: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class RecordPaymentRequest(BaseModel):
    status: str
    payment_reference: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    id: str
    created_at: str | None = None
    customer: CustomerSchema
    address: AddressSchema | None = None
    items: list[OrderItemSchema]
    total_amount: float
    payment_status: str
    payment_reference: str | None = None
    tracking_status: str
    tracking_id: str | None = None
    fulfillment_order_id: str | None = None
    fulfillment_shipment_id: str | None = None
    awb_code: str | None = None
    cancellation_reason: str | None = None
    user_id: str | None = None


class CheckoutResponse(BaseModel):
    payment_method: str
    pricing: PriceBreakdownSchema
    order: OrderResponse | None = None
    reference: str | None = None
    gateway: str | None = None
    amount_minor: int | None = None
    params: dict = Field(default_factory=dict)
    redirect_url: str | None = None


class SyncResponse(BaseModel):
    order_id: str
    applied: bool
    reason: str
    tracking_status: str
    external_status: str | None = None


class ShipmentResponse(BaseModel):
    booked: bool
    fulfillment_order_id: str | None = None
    fulfillment_shipment_id: str | None = None
    awb_code: str | None = None
    reason: str | None = None


class ServiceabilityResponse(BaseModel):
    pincode: str
    serviceable: bool
