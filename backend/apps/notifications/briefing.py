"""
Daily briefing aggregation and the plain-text fallback report.

Everything here is a pure function over snapshots of orders and products,
so the same code serves the LLM prompt, the fallback text and the email.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any

LOW_STOCK_THRESHOLD = 5
TOP_PRODUCTS_LIMIT = 5
TREND_WINDOW_DAYS = 7
SHIPPED_STATUSES = frozenset({"shipped", "delivered"})
PENDING_STATUS = "paid"


@dataclass(frozen=True)
class OrderItemSnapshot:
    sku: str
    product_name: str
    quantity: int
    unit_price: float
    unit_cost: float


@dataclass(frozen=True)
class OrderSnapshot:
    created_at: datetime
    status: str
    total_price: float
    total_cost: float
    total_profit: float
    items: tuple[OrderItemSnapshot, ...] = ()


@dataclass(frozen=True)
class ProductSnapshot:
    sku: str
    name: str
    stock_quantity: int
    warehouse_location: str = ""


@dataclass
class DayTotals:
    orders: int = 0
    revenue: float = 0.0
    profit: float = 0.0
    cost: float = 0.0
    shipped: int = 0


@dataclass
class WeekTotals:
    orders: int = 0
    revenue: float = 0.0
    profit: float = 0.0
    avg_daily_revenue: float = 0.0
    avg_daily_profit: float = 0.0
    avg_daily_orders: float = 0.0


@dataclass
class Trends:
    revenue: float = 0.0
    profit: float = 0.0
    orders: float = 0.0


@dataclass
class LowStockItem:
    sku: str
    name: str
    quantity: int
    location: str


@dataclass
class Alerts:
    pending_orders: int = 0
    low_stock: list[LowStockItem] = field(default_factory=list)


@dataclass
class TopProduct:
    sku: str
    name: str
    revenue: float = 0.0
    profit: float = 0.0
    quantity: int = 0


@dataclass
class Insights:
    top_products: list[TopProduct] = field(default_factory=list)
    profit_margin: float = 0.0


@dataclass
class BriefingData:
    organization_name: str
    organization_slug: str
    current_time: datetime
    today: DayTotals
    recent_24h_orders: int
    last_7_days: WeekTotals
    trends: Trends
    alerts: Alerts
    insights: Insights

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["current_time"] = self.current_time.isoformat()
        return data


def compute_trend(today: float, average: float) -> float:
    """Percent change of ``today`` against ``average``; 0 when there is no average."""
    if average <= 0:
        return 0.0
    return (today - average) / average * 100


def find_low_stock(products: list[ProductSnapshot], threshold: int = LOW_STOCK_THRESHOLD) -> list[LowStockItem]:
    return [
        LowStockItem(sku=p.sku, name=p.name, quantity=p.stock_quantity, location=p.warehouse_location)
        for p in products
        if p.stock_quantity <= threshold
    ]


def top_products(orders: list[OrderSnapshot], limit: int = TOP_PRODUCTS_LIMIT) -> list[TopProduct]:
    """Products ranked by revenue across ``orders``."""
    by_sku: dict[str, TopProduct] = {}
    for order in orders:
        for item in order.items:
            entry = by_sku.setdefault(item.sku, TopProduct(sku=item.sku, name=item.product_name))
            entry.revenue += item.unit_price * item.quantity
            entry.profit += (item.unit_price - item.unit_cost) * item.quantity
            entry.quantity += item.quantity
    ranked = sorted(by_sku.values(), key=lambda p: p.revenue, reverse=True)
    return ranked[:limit]


def _sum_totals(orders: list[OrderSnapshot]) -> tuple[float, float, float]:
    revenue = sum(o.total_price for o in orders)
    profit = sum(o.total_profit for o in orders)
    cost = sum(o.total_cost for o in orders)
    return revenue, profit, cost


def build_briefing_data(
    *,
    organization_name: str,
    organization_slug: str,
    orders: list[OrderSnapshot],
    products: list[ProductSnapshot],
    pending_orders: int,
    now: datetime,
) -> BriefingData:
    """
    Aggregate the briefing from orders of (at least) the last seven days.

    "Today" starts at local midnight of ``now``.
    """
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    last_24h = now - timedelta(hours=24)
    last_7d = now - timedelta(days=TREND_WINDOW_DAYS)

    today_orders = [o for o in orders if o.created_at >= today_start]
    recent_orders = [o for o in orders if o.created_at >= last_24h]
    week_orders = [o for o in orders if o.created_at >= last_7d]

    today_revenue, today_profit, today_cost = _sum_totals(today_orders)
    week_revenue, week_profit, _ = _sum_totals(week_orders)

    week = WeekTotals(
        orders=len(week_orders),
        revenue=week_revenue,
        profit=week_profit,
        avg_daily_revenue=week_revenue / TREND_WINDOW_DAYS,
        avg_daily_profit=week_profit / TREND_WINDOW_DAYS,
        avg_daily_orders=len(week_orders) / TREND_WINDOW_DAYS,
    )

    return BriefingData(
        organization_name=organization_name,
        organization_slug=organization_slug,
        current_time=now,
        today=DayTotals(
            orders=len(today_orders),
            revenue=today_revenue,
            profit=today_profit,
            cost=today_cost,
            shipped=sum(1 for o in today_orders if o.status in SHIPPED_STATUSES),
        ),
        recent_24h_orders=len(recent_orders),
        last_7_days=week,
        trends=Trends(
            revenue=compute_trend(today_revenue, week.avg_daily_revenue),
            profit=compute_trend(today_profit, week.avg_daily_profit),
            orders=compute_trend(len(today_orders), week.avg_daily_orders),
        ),
        alerts=Alerts(pending_orders=pending_orders, low_stock=find_low_stock(products)),
        insights=Insights(
            top_products=top_products(week_orders),
            profit_margin=today_profit / today_revenue * 100 if today_revenue > 0 else 0.0,
        ),
    )


def greeting_for(now: datetime) -> str:
    if now.hour < 12:
        return "Good morning"
    if now.hour < 18:
        return "Good afternoon"
    return "Good evening"


def _signed(value: float) -> str:
    return f"{'+' if value > 0 else ''}{value:.1f}%"


def format_fallback_briefing(data: BriefingData, now: datetime | None = None) -> str:
    """
    Plain-text briefing used when the LLM is unavailable.

    The greeting and overview are always present; trends, alerts, top
    products and recommendations appear only when they have content.
    """
    now = now or data.current_time
    sections = [f"{greeting_for(now)}!"]

    sections.append(
        "\n".join(
            [
                "TODAY'S OVERVIEW",
                f"• Orders: {data.today.orders}",
                f"• Revenue: ${data.today.revenue:.2f}",
                f"• Profit: ${data.today.profit:.2f}",
                f"• Shipped: {data.today.shipped} orders",
            ]
        )
    )

    if data.last_7_days.orders > 0:
        sections.append(
            "\n".join(
                [
                    "TRENDS (vs. 7-day average)",
                    f"• Revenue: {_signed(data.trends.revenue)}",
                    f"• Profit: {_signed(data.trends.profit)}",
                    f"• Orders: {_signed(data.trends.orders)}",
                ]
            )
        )

    low_stock = data.alerts.low_stock
    if data.alerts.pending_orders > 0 or low_stock:
        lines = ["ALERTS"]
        if data.alerts.pending_orders > 0:
            lines.append(f"• {data.alerts.pending_orders} orders pending packing")
        if low_stock:
            lines.append("• Low stock items:")
            lines += [f"  - {item.name} ({item.sku}): {item.quantity} left" for item in low_stock[:3]]
            if len(low_stock) > 3:
                lines.append(f"  - ... and {len(low_stock) - 3} more")
        sections.append("\n".join(lines))

    if data.insights.top_products:
        lines = ["TOP PRODUCTS (Last 7 days)"]
        lines += [
            f"• {p.name}: ${p.revenue:.2f} ({p.quantity} sold)" for p in data.insights.top_products[:3]
        ]
        sections.append("\n".join(lines))

    recommendations = []
    if low_stock:
        recommendations.append(f"• Restock {len(low_stock)} products to prevent stockouts")
    if data.alerts.pending_orders > 0:
        recommendations.append(f"• {data.alerts.pending_orders} orders need attention for shipping")
    if data.trends.profit < -10:
        recommendations.append("• Profit is declining. Review pricing or reduce costs")
    elif data.trends.profit > 20:
        recommendations.append("• Strong profit growth! Consider expanding inventory")
    if data.today.revenue > 0 and data.insights.profit_margin < 20:
        recommendations.append(
            f"• Profit margin is low ({data.insights.profit_margin:.1f}%). Consider price adjustments"
        )
    if recommendations:
        sections.append("\n".join(["RECOMMENDATIONS", *recommendations]))

    return "\n\n".join(sections) + "\n"
