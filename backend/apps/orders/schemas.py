"""
Orders API schemas.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field

# --- Request Schemas ---


class OrderLineRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class CreateOrderRequest(BaseModel):
    items: list[OrderLineRequest] = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = ""
    customer_email: EmailStr | None = None
    recipient_name: str = Field(..., min_length=1, max_length=255)
    recipient_phone: str
    recipient_address: str
    recipient_city: str
    recipient_province: str
    recipient_postal_code: str
    recipient_country: str = Field(..., examples=["ID"])
    raw_chat_log: str = ""
    notes: str = ""


class UpdateOrderStatusRequest(BaseModel):
    status: str = Field(..., examples=["paid"])


class CancelOrderRequest(BaseModel):
    reason: str = ""


class PackOrderRequest(BaseModel):
    weight_grams: int = Field(..., gt=0)


class UpdateShippingRequest(BaseModel):
    tracking_number: str | None = None
    courier_service: str | None = None
    shipping_cost: Decimal | None = Field(None, ge=0)
    weight_grams: int | None = Field(None, gt=0)


# --- Response Schemas ---


class OrderItemResponse(BaseModel):
    product_id: int | None = None
    sku: str
    product_name: str
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal


class OrderResponse(BaseModel):
    id: int
    order_number: str
    status: str
    customer_name: str
    recipient_name: str
    recipient_phone: str
    recipient_address: str
    recipient_city: str
    recipient_province: str
    recipient_postal_code: str
    recipient_country: str
    total_cost: Decimal
    total_price: Decimal
    total_profit: Decimal
    weight_grams: int | None = None
    tracking_number: str
    courier_service: str
    notes: str
    items: list[OrderItemResponse]
    created_at: datetime
    paid_at: datetime | None = None
    packed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None


class OrderStatsResponse(BaseModel):
    total_orders: int
    by_status: dict[str, int]
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal


# --- Chat extraction ---


class ExtractOrderRequest(BaseModel):
    chat_text: str = Field(..., min_length=1, max_length=20000)


class ExtractedItemResponse(BaseModel):
    name: str | None = None
    quantity: int
    sku: str | None = None
    product_id: int | None = None
    notes: str = ""


class ExtractedOrderResponse(BaseModel):
    customer_name: str
    customer_phone: str
    recipient_name: str
    recipient_phone: str
    address: str
    city: str
    province: str
    postal_code: str
    country: str
    items: list[ExtractedItemResponse]
    notes: str
    payment_method: str
    payment_confirmed: bool


class ExtractOrderResponse(BaseModel):
    data: ExtractedOrderResponse
    confidence: float
    warnings: list[str]
    used_fallback: bool


class AvailabilityLineRequest(BaseModel):
    sku: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class AvailabilityRequest(BaseModel):
    items: list[AvailabilityLineRequest] = Field(..., min_length=1)


class ItemAvailabilityResponse(BaseModel):
    sku: str
    available: bool
    name: str
    stock_quantity: int
    requested_quantity: int
    can_fulfill: bool


class AvailabilityResponse(BaseModel):
    items: list[ItemAvailabilityResponse]
    can_fulfill_order: bool
