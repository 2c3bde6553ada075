"""
Inventory services - product catalogue and stock levels.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum

from apps.accounts.models import Role, User
from apps.core.auth import AuthContext
from apps.core.exceptions import NotFoundError, ValidationError
from apps.core.logging import get_logger
from apps.inventory.models import MovementType, Product, StockMovement
from apps.organizations.models import Organization

logger = get_logger(__name__)

LOW_STOCK_LIST_THRESHOLD = 10
MOVEMENT_LIST_LIMIT = 100

DEMO_PRODUCTS = [
    {
        "sku": "TSHIRT-BK-M",
        "name": "Black Tee - Medium",
        "description": "Staple unisex cotton tee (M)",
        "cost_of_goods": Decimal("5.50"),
        "sell_price": Decimal("14.90"),
        "stock_quantity": 40,
        "warehouse_location": "A1-01",
        "weight_grams": 220,
    },
    {
        "sku": "TSHIRT-BK-L",
        "name": "Black Tee - Large",
        "description": "Staple unisex cotton tee (L)",
        "cost_of_goods": Decimal("5.50"),
        "sell_price": Decimal("14.90"),
        "stock_quantity": 35,
        "warehouse_location": "A1-02",
        "weight_grams": 240,
    },
    {
        "sku": "CREW-HOOD-GR",
        "name": "Crew Hoodie Grey",
        "description": "Fleece hoodie with embroidery",
        "cost_of_goods": Decimal("16.00"),
        "sell_price": Decimal("39.50"),
        "stock_quantity": 18,
        "warehouse_location": "B2-04",
        "weight_grams": 520,
    },
    {
        "sku": "CAP-NV",
        "name": "Washed Cap Navy",
        "description": "Adjustable washed cotton cap",
        "cost_of_goods": Decimal("3.20"),
        "sell_price": Decimal("12.90"),
        "stock_quantity": 60,
        "warehouse_location": "C1-07",
        "weight_grams": 110,
    },
    {
        "sku": "BAG-TOTE-NAT",
        "name": "Canvas Tote Natural",
        "description": "Heavy duty 12oz tote bag",
        "cost_of_goods": Decimal("2.80"),
        "sell_price": Decimal("11.50"),
        "stock_quantity": 75,
        "warehouse_location": "C3-02",
        "weight_grams": 180,
    },
]


@dataclass
class SeedResult:
    inserted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def list_products(auth: AuthContext) -> list[Product]:
    _, org = auth.require_member()
    return list(Product.objects.filter(organization=org))


def get_product(org: Organization, product_id: int) -> Product:
    product = Product.objects.filter(id=product_id, organization=org).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(
    auth: AuthContext,
    *,
    sku: str,
    name: str,
    cost_of_goods: Decimal,
    sell_price: Decimal,
    stock_quantity: int = 0,
    description: str = "",
    warehouse_location: str = "",
    packing_instructions: str = "",
    weight_grams: int | None = None,
) -> Product:
    """
    Add a product to the caller's catalogue (owner only).

    Raises:
        ValidationError: Negative values or a duplicate SKU
    """
    user, org = auth.require_role(Role.OWNER)
    sku = sku.strip().upper()
    if not sku or not name.strip():
        raise ValidationError("SKU and name are required")
    if cost_of_goods < 0 or sell_price < 0 or stock_quantity < 0:
        raise ValidationError("Prices and stock cannot be negative")

    try:
        with transaction.atomic():
            product = Product.objects.create(
                organization=org,
                sku=sku,
                name=name.strip(),
                description=description,
                cost_of_goods=cost_of_goods,
                sell_price=sell_price,
                stock_quantity=stock_quantity,
                warehouse_location=warehouse_location,
                packing_instructions=packing_instructions,
                weight_grams=weight_grams,
                created_by=user,
            )
            if stock_quantity:
                record_movement(
                    product,
                    MovementType.STOCK_IN,
                    quantity_before=0,
                    quantity_change=stock_quantity,
                    user=user,
                    notes="Initial stock",
                )
    except IntegrityError:
        raise ValidationError(f"SKU '{sku}' already exists") from None

    return product


def record_movement(
    product: Product,
    movement_type: str,
    *,
    quantity_before: int,
    quantity_change: int,
    user: User | None = None,
    reference: str = "",
    notes: str = "",
) -> StockMovement:
    return StockMovement.objects.create(
        organization_id=product.organization_id,
        product=product,
        sku=product.sku,
        movement_type=movement_type,
        quantity_before=quantity_before,
        quantity_change=quantity_change,
        quantity_after=quantity_before + quantity_change,
        reference=reference,
        notes=notes,
        user=user,
    )


def adjust_stock(auth: AuthContext, product_id: int, *, change: int, notes: str = "") -> Product:
    """
    Apply a manual stock correction (owner only).

    Raises:
        NotFoundError: If the product is not in the caller's organization
        ValidationError: If the result would be negative
    """
    user, org = auth.require_role(Role.OWNER)
    with transaction.atomic():
        product = Product.objects.select_for_update().filter(id=product_id, organization=org).first()
        if product is None:
            raise NotFoundError("Product not found")

        before = product.stock_quantity
        if before + change < 0:
            raise ValidationError("Stock cannot go below zero")

        product.stock_quantity = before + change
        product.save(update_fields=["stock_quantity", "updated_at"])
        record_movement(
            product,
            MovementType.STOCK_ADJUSTMENT,
            quantity_before=before,
            quantity_change=change,
            user=user,
            notes=notes,
        )

    logger.info("stock_adjusted", org_id=org.id, sku=product.sku, change=change, after=product.stock_quantity)
    return product


@dataclass
class MovementStats:
    total_movements: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    total_stock_in: int = 0
    total_stock_out: int = 0


def _movements(org: Organization, start: datetime | None, end: datetime | None):
    movements = StockMovement.objects.filter(organization=org)
    if start is not None:
        movements = movements.filter(created_at__gte=start)
    if end is not None:
        movements = movements.filter(created_at__lte=end)
    return movements


def list_movements(
    auth: AuthContext,
    *,
    product_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = MOVEMENT_LIST_LIMIT,
) -> list[StockMovement]:
    """
    Stock movement audit trail, newest first (owner only).

    Raises:
        NotFoundError: If ``product_id`` is not in the caller's organization
    """
    _, org = auth.require_role(Role.OWNER)
    movements = _movements(org, start, end)
    if product_id is not None:
        movements = movements.filter(product=get_product(org, product_id))
    return list(movements.select_related("user").order_by("-created_at", "-id")[:limit])


def movement_stats(auth: AuthContext, *, start: datetime | None = None, end: datetime | None = None) -> MovementStats:
    """Movement counts per type and units in/out (owner only)."""
    _, org = auth.require_role(Role.OWNER)
    movements = _movements(org, start, end)
    totals = movements.aggregate(
        stock_in=Sum("quantity_change", filter=Q(quantity_change__gt=0)),
        stock_out=Sum("quantity_change", filter=Q(quantity_change__lt=0)),
    )
    by_type = {
        row["movement_type"]: row["count"]
        for row in movements.values("movement_type").annotate(count=Count("id")).order_by("movement_type")
    }
    return MovementStats(
        total_movements=sum(by_type.values()),
        by_type=by_type,
        total_stock_in=totals["stock_in"] or 0,
        total_stock_out=abs(totals["stock_out"] or 0),
    )


def get_low_stock(auth: AuthContext, threshold: int = LOW_STOCK_LIST_THRESHOLD) -> list[Product]:
    """Products at or below ``threshold`` units (owner or admin)."""
    _, org = auth.require_role(Role.OWNER, Role.ADMIN)
    return list(
        Product.objects.filter(organization=org, stock_quantity__lte=threshold).order_by("stock_quantity")
    )


def seed_demo_products(org: Organization) -> SeedResult:
    """Insert the demo catalogue, skipping SKUs the organization already has."""
    result = SeedResult()
    existing = set(Product.objects.filter(organization=org).values_list("sku", flat=True))

    for data in DEMO_PRODUCTS:
        if data["sku"] in existing:
            result.skipped.append(data["sku"])
            continue
        Product.objects.create(organization=org, **data)
        result.inserted.append(data["sku"])

    logger.info("demo_products_seeded", org_id=org.id, inserted=len(result.inserted), skipped=len(result.skipped))
    return result
