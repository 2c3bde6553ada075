"""
Notification services - daily briefings, alert emails and "seen" state.

Deliveries are best-effort: a failed or throttled send is logged and
reported through ``NotificationResult``, never raised to the caller.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from django.db.models import Prefetch
from django.utils import timezone

from apps.accounts.models import Role, User
from apps.core.auth import AuthContext
from apps.core.exceptions import ExternalServiceError
from apps.core.logging import get_logger
from apps.inventory.models import Product
from apps.notifications import email, llm
from apps.notifications.briefing import (
    PENDING_STATUS,
    TREND_WINDOW_DAYS,
    BriefingData,
    OrderItemSnapshot,
    OrderSnapshot,
    ProductSnapshot,
    build_briefing_data,
    format_fallback_briefing,
)
from apps.notifications.models import EmailLog, NotificationState
from apps.orders.models import Order, OrderItem, OrderStatus
from apps.organizations.models import Organization
from apps.tenancy.subdomains import build_org_url

logger = get_logger(__name__)

EMAIL_QUOTA_PER_HOUR = 5


@dataclass(frozen=True)
class BriefingResult:
    text: str
    data: BriefingData
    generated_at: datetime
    used_fallback: bool


@dataclass(frozen=True)
class QuickStats:
    today_orders: int
    today_revenue: float
    today_profit: float
    pending_orders: int
    low_stock_count: int
    top_product: str


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    throttled: bool = False
    notified_count: int = 0


@dataclass(frozen=True)
class NotificationStateResult:
    last_seen_at: datetime | None
    has_seen: bool


# =============================================================================
# Briefing
# =============================================================================


def collect_briefing_data(org: Organization, now: datetime | None = None) -> BriefingData:
    """Load the organization's recent orders and products into a briefing."""
    now = timezone.localtime(now or timezone.now())
    window_start = min(
        now - timedelta(days=TREND_WINDOW_DAYS),
        now.replace(hour=0, minute=0, second=0, microsecond=0),
    )

    orders = (
        Order.objects.filter(organization=org, created_at__gte=window_start)
        .exclude(status=OrderStatus.CANCELLED)
        .prefetch_related(Prefetch("items", queryset=OrderItem.objects.all()))
    )
    order_snapshots = [
        OrderSnapshot(
            created_at=timezone.localtime(order.created_at),
            status=order.status,
            total_price=float(order.total_price),
            total_cost=float(order.total_cost),
            total_profit=float(order.total_profit),
            items=tuple(
                OrderItemSnapshot(
                    sku=item.sku,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=float(item.unit_price),
                    unit_cost=float(item.unit_cost),
                )
                for item in order.items.all()
            ),
        )
        for order in orders
    ]
    product_snapshots = [
        ProductSnapshot(
            sku=p.sku,
            name=p.name,
            stock_quantity=p.stock_quantity,
            warehouse_location=p.warehouse_location,
        )
        for p in Product.objects.filter(organization=org)
    ]
    pending = Order.objects.filter(organization=org, status=PENDING_STATUS).count()

    return build_briefing_data(
        organization_name=org.name,
        organization_slug=org.slug,
        orders=order_snapshots,
        products=product_snapshots,
        pending_orders=pending,
        now=now,
    )


def generate_daily_briefing(org: Organization, now: datetime | None = None) -> BriefingResult:
    """
    Build today's briefing for ``org``.

    Uses the LLM when configured and falls back to the deterministic
    formatter when it is not, fails, or returns an empty reply.
    """
    now = timezone.localtime(now or timezone.now())
    data = collect_briefing_data(org, now)

    text = ""
    if llm.is_llm_configured():
        try:
            text = llm.generate_briefing_text(data.to_dict())
        except ExternalServiceError:
            logger.warning("briefing_llm_fallback", org_id=org.id)

    used_fallback = not text
    if used_fallback:
        text = format_fallback_briefing(data, now)

    logger.info("briefing_generated", org_id=org.id, used_fallback=used_fallback)
    return BriefingResult(text=text, data=data, generated_at=now, used_fallback=used_fallback)


def get_quick_stats(org: Organization, now: datetime | None = None) -> QuickStats:
    data = collect_briefing_data(org, now)
    top = data.insights.top_products
    return QuickStats(
        today_orders=data.today.orders,
        today_revenue=data.today.revenue,
        today_profit=data.today.profit,
        pending_orders=data.alerts.pending_orders,
        low_stock_count=len(data.alerts.low_stock),
        top_product=top[0].name if top else "None",
    )


# =============================================================================
# Email alerts
# =============================================================================


def _recipients(org: Organization, roles: tuple[str, ...]) -> list[str]:
    return list(
        User.objects.filter(organization=org, role__in=roles, is_active=True)
        .order_by("email")
        .values_list("email", flat=True)
    )


def is_email_quota_exceeded(org: Organization, now: datetime | None = None) -> bool:
    since = (now or timezone.now()) - timedelta(hours=1)
    sent = EmailLog.objects.filter(organization=org, sent_at__gte=since).count()
    return sent >= EMAIL_QUOTA_PER_HOUR


def _deliver(
    org: Organization,
    *,
    template: str,
    subject: str,
    context: dict,
    roles: tuple[str, ...],
) -> NotificationResult:
    if is_email_quota_exceeded(org):
        logger.warning("email_quota_exceeded", org_id=org.id, template=template)
        return NotificationResult(success=False, throttled=True)

    recipients = _recipients(org, roles)
    if not recipients:
        logger.info("email_no_recipients", org_id=org.id, template=template)
        return NotificationResult(success=False)

    messages = [email.render_email(template, to, subject, context) for to in recipients]
    try:
        message_ids = email.send_batch(messages)
    except ExternalServiceError as e:
        logger.warning("email_batch_failed", org_id=org.id, template=template, error=str(e))
        return NotificationResult(success=False)

    sent_at = timezone.now()
    EmailLog.objects.bulk_create(
        [
            EmailLog(
                organization=org,
                recipient=message.to,
                subject=subject,
                template=template,
                provider_message_id=message_id,
                sent_at=sent_at,
            )
            for message, message_id in zip(messages, message_ids, strict=True)
        ]
    )
    return NotificationResult(success=True, notified_count=len(recipients))


def send_stock_alert(org: Organization, product: Product, *, reporter_name: str) -> NotificationResult:
    """Email owners and admins that ``product`` is running out."""
    return _deliver(
        org,
        template="stock_alert",
        subject=f"CRITICAL STOCK ALERT - {product.sku} ({product.name})",
        context={
            "organization": org,
            "product": product,
            "reporter_name": reporter_name,
            "reported_at": timezone.localtime(),
            "inventory_url": build_org_url(org.slug, "/inventory"),
        },
        roles=(Role.OWNER, Role.ADMIN),
    )


def send_order_failure_alert(org: Organization, order_number: str, reason: str) -> NotificationResult:
    """Email owners and admins that an order could not be processed."""
    return _deliver(
        org,
        template="order_failure",
        subject=f"Order Processing Failed - {order_number}",
        context={
            "organization": org,
            "order_number": order_number,
            "reason": reason,
            "orders_url": build_org_url(org.slug, "/orders"),
        },
        roles=(Role.OWNER, Role.ADMIN),
    )


def send_daily_briefing_email(org: Organization, now: datetime | None = None) -> NotificationResult:
    """Generate the briefing and email it to the organization's owners."""
    briefing = generate_daily_briefing(org, now)
    return _deliver(
        org,
        template="daily_briefing",
        subject=f"Daily Briefing - {org.name}",
        context={
            "organization": org,
            "briefing": briefing.text,
            "generated_at": briefing.generated_at,
            "dashboard_url": build_org_url(org.slug, "/dashboard"),
        },
        roles=(Role.OWNER,),
    )


# =============================================================================
# Seen state
# =============================================================================


def get_notification_state(auth: AuthContext) -> NotificationStateResult:
    user, org = auth.require_member()
    state = NotificationState.objects.filter(organization=org, user=user).first()
    last_seen_at = state.last_seen_at if state else None
    return NotificationStateResult(last_seen_at=last_seen_at, has_seen=last_seen_at is not None)


def mark_notifications_seen(auth: AuthContext) -> bool:
    """Set ``last_seen_at`` to now. Returns True when the state row was created."""
    user, org = auth.require_member()
    _, created = NotificationState.objects.update_or_create(
        organization=org,
        user=user,
        defaults={"last_seen_at": timezone.now()},
    )
    return created
