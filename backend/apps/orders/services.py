"""
Order services - order lifecycle, stock reservation and statistics.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from apps.accounts.models import Role
from apps.core.auth import AuthContext
from apps.core.exceptions import NotFoundError, ValidationError
from apps.core.logging import get_logger
from apps.inventory.models import MovementType, Product
from apps.inventory.services import record_movement
from apps.orders.models import Order, OrderItem, OrderStatus
from apps.organizations.models import Organization

logger = get_logger(__name__)

LOW_STOCK_ALERT_THRESHOLD = 5
PACKER_VISIBLE_STATUSES = (OrderStatus.PAID, OrderStatus.PROCESSING)


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: int


@dataclass
class OrderStats:
    total_orders: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    total_revenue: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")


def _next_order_number(org: Organization) -> str:
    count = Order.objects.filter(organization=org).count()
    return f"ORD-{count + 1:05d}"


def get_order(org: Organization, order_id: int) -> Order:
    order = Order.objects.filter(id=order_id, organization=org).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def create_order(
    auth: AuthContext,
    *,
    lines: list[OrderLine],
    customer_name: str,
    recipient_name: str,
    recipient_phone: str,
    recipient_address: str,
    recipient_city: str,
    recipient_province: str,
    recipient_postal_code: str,
    recipient_country: str,
    customer_phone: str = "",
    customer_email: str = "",
    raw_chat_log: str = "",
    notes: str = "",
) -> Order:
    """
    Create an order and reserve its stock (owner or admin).

    Raises:
        ValidationError: Empty order, bad quantity, or insufficient stock
        NotFoundError: If a product is not in the caller's organization
    """
    user, org = auth.require_role(Role.OWNER, Role.ADMIN)
    if not lines:
        raise ValidationError("Order must contain at least one item")
    if any(line.quantity <= 0 for line in lines):
        raise ValidationError("Quantity must be positive")

    with transaction.atomic():
        # Serializes order numbering per organization
        Organization.objects.select_for_update().filter(id=org.id).first()

        # One locked instance per product; repeated lines draw from the same remaining stock
        locked: dict[int, Product] = {}
        remaining: dict[int, int] = {}
        products: list[tuple[Product, int]] = []
        for line in lines:
            product = locked.get(line.product_id)
            if product is None:
                product = (
                    Product.objects.select_for_update()
                    .filter(id=line.product_id, organization=org)
                    .first()
                )
                if product is None:
                    raise NotFoundError(f"Product {line.product_id} not found")
                locked[product.id] = product
                remaining[product.id] = product.stock_quantity
            if remaining[product.id] < line.quantity:
                raise ValidationError(
                    f"Insufficient stock for {product.name}. Available: {remaining[product.id]}"
                )
            remaining[product.id] -= line.quantity
            products.append((product, line.quantity))

        total_cost = sum((p.cost_of_goods * qty for p, qty in products), Decimal("0"))
        total_price = sum((p.sell_price * qty for p, qty in products), Decimal("0"))

        order = Order.objects.create(
            organization=org,
            order_number=_next_order_number(org),
            status=OrderStatus.PENDING,
            customer_name=customer_name,
            customer_phone=customer_phone,
            customer_email=customer_email,
            recipient_name=recipient_name,
            recipient_phone=recipient_phone,
            recipient_address=recipient_address,
            recipient_city=recipient_city,
            recipient_province=recipient_province,
            recipient_postal_code=recipient_postal_code,
            recipient_country=recipient_country,
            total_cost=total_cost,
            total_price=total_price,
            total_profit=total_price - total_cost,
            raw_chat_log=raw_chat_log,
            notes=notes,
            created_by=user,
        )

        for product, quantity in products:
            OrderItem.objects.create(
                order=order,
                product=product,
                sku=product.sku,
                product_name=product.name,
                quantity=quantity,
                unit_price=product.sell_price,
                unit_cost=product.cost_of_goods,
            )
            before = product.stock_quantity
            product.stock_quantity = before - quantity
            product.save(update_fields=["stock_quantity", "updated_at"])
            record_movement(
                product,
                MovementType.ORDER_CREATED,
                quantity_before=before,
                quantity_change=-quantity,
                user=user,
                reference=order.order_number,
            )

    logger.info("order_created", org_id=org.id, order_number=order.order_number, total=str(total_price))

    low_stock = [p for p in locked.values() if p.stock_quantity <= LOW_STOCK_ALERT_THRESHOLD]
    if low_stock:
        _alert_low_stock(org, low_stock, reporter_name=user.name or user.email)

    return order


def _alert_low_stock(org: Organization, products: list[Product], reporter_name: str) -> None:
    from apps.notifications.services import send_stock_alert

    for product in products:
        send_stock_alert(org, product, reporter_name=reporter_name)


def list_orders(auth: AuthContext, status: str | None = None) -> list[Order]:
    """Orders of the caller's organization. Packers only see the packing queue."""
    user, org = auth.require_member()
    orders = Order.objects.filter(organization=org).prefetch_related("items")
    if status:
        orders = orders.filter(status=status)
    if user.role == Role.PACKER:
        orders = orders.filter(status__in=PACKER_VISIBLE_STATUSES)
    return list(orders)


def update_order_status(auth: AuthContext, order_id: int, status: str) -> Order:
    """Set an order's status and stamp the matching lifecycle timestamp (owner or admin)."""
    _, org = auth.require_role(Role.OWNER, Role.ADMIN)
    if status not in OrderStatus.values:
        raise ValidationError(f"Unknown status '{status}'")
    if status == OrderStatus.CANCELLED:
        return cancel_order(auth, order_id)

    order = get_order(org, order_id)
    now = timezone.now()
    order.status = status
    update_fields = ["status", "updated_at"]
    if status == OrderStatus.PAID:
        order.paid_at = now
        update_fields.append("paid_at")
    elif status == OrderStatus.SHIPPED:
        order.shipped_at = now
        update_fields.append("shipped_at")
    elif status == OrderStatus.DELIVERED:
        order.delivered_at = now
        update_fields.append("delivered_at")
    order.save(update_fields=update_fields)
    return order


def mark_packed(auth: AuthContext, order_id: int, weight_grams: int) -> Order:
    """Packer confirms an order is packed; it moves to processing."""
    user, org = auth.require_role(Role.PACKER)
    order = get_order(org, order_id)
    if order.status != OrderStatus.PAID:
        raise ValidationError("Only paid orders can be packed")
    order.status = OrderStatus.PROCESSING
    order.weight_grams = weight_grams
    order.packed_by = user
    order.packed_at = timezone.now()
    order.save(update_fields=["status", "weight_grams", "packed_by", "packed_at", "updated_at"])
    return order


def update_shipping(
    auth: AuthContext,
    order_id: int,
    *,
    tracking_number: str | None = None,
    courier_service: str | None = None,
    shipping_cost: Decimal | None = None,
    weight_grams: int | None = None,
) -> Order:
    """Record shipping details. A tracking number ships a processing order."""
    _, org = auth.require_role(Role.OWNER, Role.ADMIN, Role.PACKER)
    order = get_order(org, order_id)
    if tracking_number is not None:
        order.tracking_number = tracking_number
    if courier_service is not None:
        order.courier_service = courier_service
    if shipping_cost is not None:
        order.shipping_cost = shipping_cost
    if weight_grams is not None:
        order.weight_grams = weight_grams
    if tracking_number and order.status == OrderStatus.PROCESSING:
        order.status = OrderStatus.SHIPPED
        order.shipped_at = timezone.now()
    order.save()
    return order


def cancel_order(auth: AuthContext, order_id: int, reason: str = "") -> Order:
    """
    Cancel an order and return its stock (owner or admin).

    Raises:
        ValidationError: If the order has already shipped
    """
    user, org = auth.require_role(Role.OWNER, Role.ADMIN)
    with transaction.atomic():
        order = Order.objects.select_for_update().filter(id=order_id, organization=org).first()
        if order is None:
            raise NotFoundError("Order not found")
        if order.status in (OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            raise ValidationError("Cannot cancel shipped or delivered orders")
        if order.status == OrderStatus.CANCELLED:
            return order

        for item in order.items.all():
            if item.product_id is None:
                continue
            product = Product.objects.select_for_update().get(id=item.product_id)
            before = product.stock_quantity
            product.stock_quantity = before + item.quantity
            product.save(update_fields=["stock_quantity", "updated_at"])
            record_movement(
                product,
                MovementType.ORDER_CANCELLED,
                quantity_before=before,
                quantity_change=item.quantity,
                user=user,
                reference=order.order_number,
                notes=reason,
            )

        order.status = OrderStatus.CANCELLED
        if reason:
            order.notes = f"{order.notes}\nCancellation reason: {reason}".strip()
        order.save(update_fields=["status", "notes", "updated_at"])

    logger.info("order_cancelled", org_id=org.id, order_number=order.order_number)
    return order


def compute_order_stats(org: Organization) -> OrderStats:
    """Order counts per status; money totals exclude cancelled orders."""
    orders = Order.objects.filter(organization=org)
    by_status = {
        row["status"]: row["count"]
        for row in orders.values("status").annotate(count=Count("id")).order_by("status")
    }
    totals = orders.exclude(status=OrderStatus.CANCELLED).aggregate(
        revenue=Sum("total_price"),
        cost=Sum("total_cost"),
        profit=Sum("total_profit"),
    )
    return OrderStats(
        total_orders=sum(by_status.values()),
        by_status=by_status,
        total_revenue=totals["revenue"] or Decimal("0"),
        total_cost=totals["cost"] or Decimal("0"),
        total_profit=totals["profit"] or Decimal("0"),
    )


def clear_orders(org: Organization, *, confirm: bool) -> int:
    """
    Delete every order of ``org``. Returns the number of orders deleted.

    Raises:
        ValidationError: Unless ``confirm`` is True
    """
    if not confirm:
        raise ValidationError("Refusing to delete orders without confirmation")
    count = Order.objects.filter(organization=org).count()
    Order.objects.filter(organization=org).delete()
    logger.warning("orders_cleared", org_id=org.id, deleted=count)
    return count
