"""
Owner dashboard analytics - KPIs, sales trends and product performance.

All reports are owner only. Money totals never include cancelled orders;
order counts in the KPI summary do, so the completion rate reflects them.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.db.models import Count, DecimalField, F, Max, Sum
from django.utils import timezone

from apps.accounts.models import Role
from apps.core.auth import AuthContext
from apps.core.exceptions import ValidationError
from apps.inventory.models import Product
from apps.notifications.briefing import LOW_STOCK_THRESHOLD, SHIPPED_STATUSES
from apps.orders.models import Order, OrderItem, OrderStatus

KPI_WINDOW_DAYS = 30
TREND_WINDOW_DAYS = 90
TOP_PRODUCTS_LIMIT = 5
TOP_PACKERS_LIMIT = 3
PRODUCT_ANALYTICS_LIMIT = 20
PERIODS = ("daily", "weekly", "monthly")

ZERO = Decimal("0.00")


@dataclass
class KpiSummary:
    total_orders: int = 0
    shipped_orders: int = 0
    cancelled_orders: int = 0
    completion_rate: float = 0.0
    total_revenue: Decimal = ZERO
    total_profit: Decimal = ZERO
    average_order_value: Decimal = ZERO
    profit_margin: float = 0.0


@dataclass
class ProductPerformance:
    sku: str
    name: str
    sold: int
    stock_remaining: int | None


@dataclass
class PackerPerformance:
    user_id: int
    name: str
    orders_packed: int
    avg_packing_minutes: float


@dataclass
class DashboardKPIs:
    start: datetime
    end: datetime
    summary: KpiSummary
    top_products: list[ProductPerformance] = field(default_factory=list)
    top_packers: list[PackerPerformance] = field(default_factory=list)


@dataclass
class TrendPoint:
    period_start: date
    label: str
    orders: int = 0
    revenue: Decimal = ZERO
    profit: Decimal = ZERO


@dataclass
class SalesTrends:
    period: str
    start: datetime
    end: datetime
    points: list[TrendPoint]
    total_orders: int
    total_revenue: Decimal
    average_daily_orders: float


@dataclass
class ProductAnalytics:
    product_id: int
    sku: str
    name: str
    current_stock: int
    total_sold: int
    revenue: Decimal
    profit: Decimal
    profit_margin: float
    low_stock: bool
    last_sold: datetime | None


@dataclass
class ProductAnalyticsReport:
    products: list[ProductAnalytics]
    total_products: int
    low_stock_count: int
    out_of_stock_count: int


def _window(start: datetime | None, end: datetime | None, default_days: int) -> tuple[datetime, datetime]:
    end = end or timezone.now()
    start = start or end - timedelta(days=default_days)
    if start > end:
        raise ValidationError("Start must be before end")
    return start, end


def _percent(part: float | Decimal, whole: float | Decimal) -> float:
    return round(float(part) / float(whole) * 100, 2) if whole else 0.0


def _money_sum(expression):
    return Sum(expression, output_field=DecimalField(max_digits=14, decimal_places=2))


def get_dashboard_kpis(
    auth: AuthContext,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
) -> DashboardKPIs:
    """
    Headline numbers for the owner dashboard (default: last 30 days).

    Average order value is taken over orders that were not cancelled.

    Raises:
        ValidationError: If ``start`` is after ``end``
    """
    _, org = auth.require_role(Role.OWNER)
    start, end = _window(start, end, KPI_WINDOW_DAYS)

    orders = Order.objects.filter(organization=org, created_at__gte=start, created_at__lte=end)
    counts = orders.aggregate(total=Count("id"))
    shipped = orders.filter(status__in=SHIPPED_STATUSES).count()
    cancelled = orders.filter(status=OrderStatus.CANCELLED).count()
    billable = orders.exclude(status=OrderStatus.CANCELLED)
    money = billable.aggregate(revenue=Sum("total_price"), profit=Sum("total_profit"), count=Count("id"))
    revenue = money["revenue"] or ZERO
    profit = money["profit"] or ZERO

    summary = KpiSummary(
        total_orders=counts["total"],
        shipped_orders=shipped,
        cancelled_orders=cancelled,
        completion_rate=_percent(shipped, counts["total"]),
        total_revenue=revenue,
        total_profit=profit,
        average_order_value=(revenue / money["count"]).quantize(ZERO) if money["count"] else ZERO,
        profit_margin=_percent(profit, revenue),
    )

    sold = (
        OrderItem.objects.filter(order__in=billable)
        .values("sku")
        .annotate(name=Max("product_name"), sold=Sum("quantity"))
        .order_by("-sold", "sku")[:TOP_PRODUCTS_LIMIT]
    )
    stock = dict(
        Product.objects.filter(organization=org, sku__in=[row["sku"] for row in sold]).values_list(
            "sku", "stock_quantity"
        )
    )
    top_products = [
        ProductPerformance(sku=row["sku"], name=row["name"], sold=row["sold"], stock_remaining=stock.get(row["sku"]))
        for row in sold
    ]

    return DashboardKPIs(
        start=start,
        end=end,
        summary=summary,
        top_products=top_products,
        top_packers=_top_packers(orders),
    )


def _top_packers(orders) -> list[PackerPerformance]:
    """Packers ranked by orders packed; packing time runs from creation to packing."""
    durations: dict[int, list[float]] = defaultdict(list)
    names: dict[int, str] = {}
    packed = orders.filter(packed_by__isnull=False, packed_at__isnull=False).values_list(
        "packed_by_id", "packed_by__name", "packed_by__email", "created_at", "packed_at"
    )
    for user_id, name, email, created_at, packed_at in packed:
        names[user_id] = name or email
        durations[user_id].append((packed_at - created_at).total_seconds() / 60)

    ranked = sorted(durations.items(), key=lambda item: (-len(item[1]), names[item[0]]))
    return [
        PackerPerformance(
            user_id=user_id,
            name=names[user_id],
            orders_packed=len(minutes),
            avg_packing_minutes=round(sum(minutes) / len(minutes), 1),
        )
        for user_id, minutes in ranked[:TOP_PACKERS_LIMIT]
    ]


def _bucket(day: date, period: str) -> tuple[date, str]:
    if period == "weekly":
        # Weeks start on Sunday
        week_start = day - timedelta(days=(day.weekday() + 1) % 7)
        return week_start, week_start.isoformat()
    if period == "monthly":
        return day.replace(day=1), day.strftime("%Y-%m")
    return day, day.isoformat()


def get_sales_trends(
    auth: AuthContext,
    period: str = "daily",
    *,
    start: datetime | None = None,
    end: datetime | None = None,
) -> SalesTrends:
    """
    Orders, revenue and profit per day, week or month (default: last 90 days).

    Cancelled orders are left out. Only periods with orders are returned.

    Raises:
        ValidationError: If ``period`` is unknown or ``start`` is after ``end``
    """
    _, org = auth.require_role(Role.OWNER)
    if period not in PERIODS:
        raise ValidationError(f"Period must be one of: {', '.join(PERIODS)}")
    start, end = _window(start, end, TREND_WINDOW_DAYS)

    rows = (
        Order.objects.filter(organization=org, created_at__gte=start, created_at__lte=end)
        .exclude(status=OrderStatus.CANCELLED)
        .values_list("created_at", "total_price", "total_profit")
    )
    buckets: dict[date, TrendPoint] = {}
    for created_at, price, profit in rows:
        key, label = _bucket(timezone.localtime(created_at).date(), period)
        point = buckets.setdefault(key, TrendPoint(period_start=key, label=label))
        point.orders += 1
        point.revenue += price
        point.profit += profit

    points = [buckets[key] for key in sorted(buckets)]
    total_orders = sum(p.orders for p in points)
    days = max(1, math.ceil((end - start).total_seconds() / 86400))
    return SalesTrends(
        period=period,
        start=start,
        end=end,
        points=points,
        total_orders=total_orders,
        total_revenue=sum((p.revenue for p in points), ZERO),
        average_daily_orders=round(total_orders / days, 2),
    )


def get_product_analytics(auth: AuthContext, limit: int = PRODUCT_ANALYTICS_LIMIT) -> ProductAnalyticsReport:
    """Lifetime sales per product, highest revenue first; summary counts cover the whole catalogue."""
    _, org = auth.require_role(Role.OWNER)
    products = list(Product.objects.filter(organization=org))

    sales = {
        row["product_id"]: row
        for row in OrderItem.objects.filter(order__organization=org, product__isnull=False)
        .exclude(order__status=OrderStatus.CANCELLED)
        .values("product_id")
        .annotate(
            sold=Sum("quantity"),
            revenue=_money_sum(F("quantity") * F("unit_price")),
            profit=_money_sum(F("quantity") * (F("unit_price") - F("unit_cost"))),
            last_sold=Max("order__created_at"),
        )
        .order_by()
    }

    report = []
    for product in products:
        row = sales.get(product.id, {})
        revenue = row.get("revenue") or ZERO
        profit = row.get("profit") or ZERO
        report.append(
            ProductAnalytics(
                product_id=product.id,
                sku=product.sku,
                name=product.name,
                current_stock=product.stock_quantity,
                total_sold=row.get("sold") or 0,
                revenue=revenue,
                profit=profit,
                profit_margin=_percent(profit, revenue),
                low_stock=product.stock_quantity <= LOW_STOCK_THRESHOLD,
                last_sold=row.get("last_sold"),
            )
        )
    report.sort(key=lambda p: (-p.revenue, p.sku))

    return ProductAnalyticsReport(
        products=report[:limit],
        total_products=len(products),
        low_stock_count=sum(1 for p in products if p.stock_quantity <= LOW_STOCK_THRESHOLD),
        out_of_stock_count=sum(1 for p in products if p.stock_quantity == 0),
    )
