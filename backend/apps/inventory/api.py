"""
Inventory API endpoints.
"""

from datetime import datetime

from ninja import Router

from apps.core.auth import get_auth_context
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.core.types import AuthenticatedHttpRequest
from apps.inventory import services
from apps.inventory.models import Product, StockMovement
from apps.inventory.schemas import (
    AdjustStockRequest,
    CreateProductRequest,
    MovementStatsResponse,
    ProductResponse,
    StockMovementResponse,
)

router = Router(tags=["inventory"])
bearer_auth = BearerAuth()


def _product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        sku=product.sku,
        name=product.name,
        description=product.description,
        cost_of_goods=product.cost_of_goods,
        sell_price=product.sell_price,
        profit_margin=round(float(product.profit_margin), 2),
        stock_quantity=product.stock_quantity,
        warehouse_location=product.warehouse_location,
        packing_instructions=product.packing_instructions,
        weight_grams=product.weight_grams,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


@router.get(
    "",
    response={200: list[ProductResponse], 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listProducts",
    summary="List products",
)
def list_products(request: AuthenticatedHttpRequest) -> list[ProductResponse]:
    return [_product_response(p) for p in services.list_products(get_auth_context(request))]


@router.post(
    "",
    response={200: ProductResponse, 400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="createProduct",
    summary="Create a product",
)
def create_product(request: AuthenticatedHttpRequest, payload: CreateProductRequest) -> ProductResponse:
    product = services.create_product(get_auth_context(request), **payload.model_dump())
    return _product_response(product)


@router.get(
    "/low-stock",
    response={200: list[ProductResponse], 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listLowStockProducts",
    summary="List products running low",
)
def low_stock(
    request: AuthenticatedHttpRequest,
    threshold: int = services.LOW_STOCK_LIST_THRESHOLD,
) -> list[ProductResponse]:
    products = services.get_low_stock(get_auth_context(request), threshold=threshold)
    return [_product_response(p) for p in products]


@router.post(
    "/{product_id}/adjust-stock",
    response={200: ProductResponse, 400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="adjustProductStock",
    summary="Apply a manual stock correction",
)
def adjust_stock(
    request: AuthenticatedHttpRequest,
    product_id: int,
    payload: AdjustStockRequest,
) -> ProductResponse:
    product = services.adjust_stock(
        get_auth_context(request),
        product_id,
        change=payload.change,
        notes=payload.notes,
    )
    return _product_response(product)


def _movement_response(movement: StockMovement) -> StockMovementResponse:
    return StockMovementResponse(
        id=movement.id,
        product_id=movement.product_id,
        sku=movement.sku,
        movement_type=movement.movement_type,
        quantity_before=movement.quantity_before,
        quantity_change=movement.quantity_change,
        quantity_after=movement.quantity_after,
        reference=movement.reference,
        notes=movement.notes,
        user_name=movement.user.name if movement.user else None,
        created_at=movement.created_at,
    )


@router.get(
    "/movements",
    response={200: list[StockMovementResponse], 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listStockMovements",
    summary="Stock movement history",
)
def list_movements(
    request: AuthenticatedHttpRequest,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = services.MOVEMENT_LIST_LIMIT,
) -> list[StockMovementResponse]:
    movements = services.list_movements(get_auth_context(request), start=start, end=end, limit=limit)
    return [_movement_response(m) for m in movements]


@router.get(
    "/movements/stats",
    response={200: MovementStatsResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="getStockMovementStats",
    summary="Stock movement totals",
)
def movement_stats(
    request: AuthenticatedHttpRequest,
    start: datetime | None = None,
    end: datetime | None = None,
) -> MovementStatsResponse:
    stats = services.movement_stats(get_auth_context(request), start=start, end=end)
    return MovementStatsResponse(
        total_movements=stats.total_movements,
        by_type=stats.by_type,
        total_stock_in=stats.total_stock_in,
        total_stock_out=stats.total_stock_out,
    )


@router.get(
    "/{product_id}/movements",
    response={200: list[StockMovementResponse], 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="listProductStockMovements",
    summary="Stock movement history for one product",
)
def list_product_movements(
    request: AuthenticatedHttpRequest,
    product_id: int,
    limit: int = services.MOVEMENT_LIST_LIMIT,
) -> list[StockMovementResponse]:
    movements = services.list_movements(get_auth_context(request), product_id=product_id, limit=limit)
    return [_movement_response(m) for m in movements]
