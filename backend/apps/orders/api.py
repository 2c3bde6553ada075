"""
Orders API endpoints.
"""

from dataclasses import asdict

from ninja import Router

from apps.accounts.models import Role
from apps.core.auth import get_auth_context
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.core.types import AuthenticatedHttpRequest
from apps.orders import extraction, services
from apps.orders.models import Order
from apps.orders.schemas import (
    AvailabilityRequest,
    AvailabilityResponse,
    CancelOrderRequest,
    CreateOrderRequest,
    ExtractedOrderResponse,
    ExtractOrderRequest,
    ExtractOrderResponse,
    OrderItemResponse,
    OrderResponse,
    OrderStatsResponse,
    PackOrderRequest,
    UpdateOrderStatusRequest,
    UpdateShippingRequest,
)

router = Router(tags=["orders"])
bearer_auth = BearerAuth()

ORDER_ERRORS = {400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse}


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        customer_name=order.customer_name,
        recipient_name=order.recipient_name,
        recipient_phone=order.recipient_phone,
        recipient_address=order.recipient_address,
        recipient_city=order.recipient_city,
        recipient_province=order.recipient_province,
        recipient_postal_code=order.recipient_postal_code,
        recipient_country=order.recipient_country,
        total_cost=order.total_cost,
        total_price=order.total_price,
        total_profit=order.total_profit,
        weight_grams=order.weight_grams,
        tracking_number=order.tracking_number,
        courier_service=order.courier_service,
        notes=order.notes,
        items=[
            OrderItemResponse(
                product_id=item.product_id,
                sku=item.sku,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                unit_cost=item.unit_cost,
            )
            for item in order.items.all()
        ],
        created_at=order.created_at,
        paid_at=order.paid_at,
        packed_at=order.packed_at,
        shipped_at=order.shipped_at,
        delivered_at=order.delivered_at,
    )


@router.get(
    "",
    response={200: list[OrderResponse], 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listOrders",
    summary="List orders",
)
def list_orders(request: AuthenticatedHttpRequest, status: str | None = None) -> list[OrderResponse]:
    """Packers only see orders waiting to be packed or in packing."""
    return [_order_response(o) for o in services.list_orders(get_auth_context(request), status)]


@router.post(
    "",
    response={200: OrderResponse, **ORDER_ERRORS},
    auth=bearer_auth,
    operation_id="createOrder",
    summary="Create an order",
)
def create_order(request: AuthenticatedHttpRequest, payload: CreateOrderRequest) -> OrderResponse:
    """Reserves stock for every line. Low-stock alerts are emailed afterwards."""
    order = services.create_order(
        get_auth_context(request),
        lines=[services.OrderLine(product_id=i.product_id, quantity=i.quantity) for i in payload.items],
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
        customer_email=payload.customer_email or "",
        recipient_name=payload.recipient_name,
        recipient_phone=payload.recipient_phone,
        recipient_address=payload.recipient_address,
        recipient_city=payload.recipient_city,
        recipient_province=payload.recipient_province,
        recipient_postal_code=payload.recipient_postal_code,
        recipient_country=payload.recipient_country,
        raw_chat_log=payload.raw_chat_log,
        notes=payload.notes,
    )
    return _order_response(order)


@router.get(
    "/stats",
    response={200: OrderStatsResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="getOrderStats",
    summary="Order statistics",
)
def order_stats(request: AuthenticatedHttpRequest) -> OrderStatsResponse:
    _, org = get_auth_context(request).require_role(Role.OWNER, Role.ADMIN)
    stats = services.compute_order_stats(org)
    return OrderStatsResponse(
        total_orders=stats.total_orders,
        by_status=stats.by_status,
        total_revenue=stats.total_revenue,
        total_cost=stats.total_cost,
        total_profit=stats.total_profit,
    )


@router.post(
    "/extract",
    response={200: ExtractOrderResponse, **ORDER_ERRORS, 502: ErrorResponse},
    auth=bearer_auth,
    operation_id="extractOrderFromChat",
    summary="Draft an order from a pasted chat",
)
def extract_order(request: AuthenticatedHttpRequest, payload: ExtractOrderRequest) -> ExtractOrderResponse:
    """Nothing is saved; review the draft and submit it to createOrder."""
    result = extraction.extract_order_from_chat(get_auth_context(request), payload.chat_text)
    return ExtractOrderResponse(
        data=ExtractedOrderResponse.model_validate(asdict(result.order)),
        confidence=result.confidence,
        warnings=result.warnings,
        used_fallback=result.used_fallback,
    )


@router.post(
    "/validate-availability",
    response={200: AvailabilityResponse, **ORDER_ERRORS},
    auth=bearer_auth,
    operation_id="validateProductAvailability",
    summary="Check stock for requested SKUs",
)
def validate_availability(request: AuthenticatedHttpRequest, payload: AvailabilityRequest) -> AvailabilityResponse:
    result = extraction.validate_product_availability(
        get_auth_context(request),
        [(line.sku, line.quantity) for line in payload.items],
    )
    return AvailabilityResponse.model_validate(asdict(result))


@router.post(
    "/{order_id}/status",
    response={200: OrderResponse, **ORDER_ERRORS},
    auth=bearer_auth,
    operation_id="updateOrderStatus",
    summary="Change an order's status",
)
def update_status(
    request: AuthenticatedHttpRequest,
    order_id: int,
    payload: UpdateOrderStatusRequest,
) -> OrderResponse:
    order = services.update_order_status(get_auth_context(request), order_id, payload.status)
    return _order_response(order)


@router.post(
    "/{order_id}/cancel",
    response={200: OrderResponse, **ORDER_ERRORS},
    auth=bearer_auth,
    operation_id="cancelOrder",
    summary="Cancel an order and restore stock",
)
def cancel(request: AuthenticatedHttpRequest, order_id: int, payload: CancelOrderRequest) -> OrderResponse:
    order = services.cancel_order(get_auth_context(request), order_id, payload.reason)
    return _order_response(order)


@router.post(
    "/{order_id}/pack",
    response={200: OrderResponse, **ORDER_ERRORS},
    auth=bearer_auth,
    operation_id="packOrder",
    summary="Mark a paid order as packed",
)
def pack(request: AuthenticatedHttpRequest, order_id: int, payload: PackOrderRequest) -> OrderResponse:
    order = services.mark_packed(get_auth_context(request), order_id, payload.weight_grams)
    return _order_response(order)


@router.patch(
    "/{order_id}/shipping",
    response={200: OrderResponse, **ORDER_ERRORS},
    auth=bearer_auth,
    operation_id="updateOrderShipping",
    summary="Record shipping details",
)
def update_shipping(
    request: AuthenticatedHttpRequest,
    order_id: int,
    payload: UpdateShippingRequest,
) -> OrderResponse:
    order = services.update_shipping(get_auth_context(request), order_id, **payload.model_dump())
    return _order_response(order)
