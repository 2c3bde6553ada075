"""
Tests for owner dashboard analytics.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.analytics.services import get_dashboard_kpis, get_product_analytics, get_sales_trends
from apps.core.exceptions import AccessDeniedError, ValidationError
from apps.orders.models import Order, OrderStatus
from tests.accounts.factories import OrganizationFactory, make_member
from tests.conftest import auth_for
from tests.inventory.factories import ProductFactory
from tests.orders.factories import OrderFactory, OrderItemFactory


def placed(order: Order, when: datetime, **fields) -> Order:
    Order.objects.filter(id=order.id).update(created_at=when, **fields)
    order.refresh_from_db()
    return order


@pytest.fixture
def shop():
    org = OrganizationFactory.create()
    owner = make_member(org)
    return org, owner


@pytest.mark.django_db
class TestDashboardKPIs:
    def test_summary_products_and_packers(self, shop) -> None:
        org, owner = shop
        packer = make_member(org, role="packer", name="Budi")
        ProductFactory.create(organization=org, sku="TEE", stock_quantity=7)
        when = timezone.now() - timedelta(days=2)

        shipped = placed(
            OrderFactory.create(organization=org, status=OrderStatus.SHIPPED),
            when,
            packed_by=packer,
            packed_at=when + timedelta(minutes=30),
        )
        delivered = placed(
            OrderFactory.create(organization=org, status=OrderStatus.DELIVERED),
            when,
            packed_by=packer,
            packed_at=when + timedelta(minutes=10),
        )
        paid = OrderFactory.create(organization=org, status=OrderStatus.PAID)
        cancelled = OrderFactory.create(organization=org, status=OrderStatus.CANCELLED)
        placed(OrderFactory.create(organization=org, status=OrderStatus.SHIPPED), timezone.now() - timedelta(days=60))
        OrderItemFactory.create(order=shipped, sku="TEE", product_name="Black Tee", quantity=3)
        OrderItemFactory.create(order=paid, sku="TEE", product_name="Black Tee", quantity=1)
        OrderItemFactory.create(order=delivered, sku="CAP", product_name="Cap", quantity=2)
        OrderItemFactory.create(order=cancelled, sku="TEE", product_name="Black Tee", quantity=10)

        kpis = get_dashboard_kpis(auth_for(owner))

        summary = kpis.summary
        assert (summary.total_orders, summary.shipped_orders, summary.cancelled_orders) == (4, 2, 1)
        assert summary.completion_rate == 50.0
        assert summary.total_revenue == Decimal("30.00")
        assert summary.total_profit == Decimal("18.00")
        assert summary.average_order_value == Decimal("10.00")
        assert summary.profit_margin == 60.0
        assert [(p.sku, p.sold, p.stock_remaining) for p in kpis.top_products] == [("TEE", 4, 7), ("CAP", 2, None)]
        assert [(p.name, p.orders_packed, p.avg_packing_minutes) for p in kpis.top_packers] == [("Budi", 2, 20.0)]

    def test_empty_window(self, shop) -> None:
        _, owner = shop

        kpis = get_dashboard_kpis(auth_for(owner))

        assert kpis.summary.total_orders == 0
        assert kpis.summary.completion_rate == 0.0
        assert kpis.summary.average_order_value == Decimal("0.00")
        assert kpis.top_products == []
        assert kpis.top_packers == []

    def test_other_org_excluded(self, shop) -> None:
        _, owner = shop
        OrderFactory.create()

        assert get_dashboard_kpis(auth_for(owner)).summary.total_orders == 0

    def test_start_after_end(self, shop) -> None:
        _, owner = shop
        now = timezone.now()

        with pytest.raises(ValidationError):
            get_dashboard_kpis(auth_for(owner), start=now, end=now - timedelta(days=1))

    def test_admin_denied(self, shop) -> None:
        org, _ = shop
        admin = make_member(org, role="admin")

        with pytest.raises(AccessDeniedError):
            get_dashboard_kpis(auth_for(admin))


@pytest.mark.django_db
class TestSalesTrends:
    START = datetime(2025, 3, 1, tzinfo=UTC)
    END = datetime(2025, 3, 31, tzinfo=UTC)

    @pytest.fixture
    def march(self, shop):
        org, owner = shop
        for day in (2, 2, 4, 9):
            placed(OrderFactory.create(organization=org), datetime(2025, 3, day, 12, tzinfo=UTC))
        placed(
            OrderFactory.create(organization=org, status=OrderStatus.CANCELLED),
            datetime(2025, 3, 4, 12, tzinfo=UTC),
        )
        placed(OrderFactory.create(organization=org), datetime(2025, 4, 2, 12, tzinfo=UTC))
        return owner

    def test_daily(self, march) -> None:
        trends = get_sales_trends(auth_for(march), "daily", start=self.START, end=self.END)

        assert [(p.label, p.orders, p.revenue, p.profit) for p in trends.points] == [
            ("2025-03-02", 2, Decimal("20.00"), Decimal("12.00")),
            ("2025-03-04", 1, Decimal("10.00"), Decimal("6.00")),
            ("2025-03-09", 1, Decimal("10.00"), Decimal("6.00")),
        ]
        assert trends.total_orders == 4
        assert trends.total_revenue == Decimal("40.00")
        assert trends.average_daily_orders == 0.13

    def test_weekly_starts_on_sunday(self, march) -> None:
        trends = get_sales_trends(auth_for(march), "weekly", start=self.START, end=self.END)

        assert [(p.label, p.orders) for p in trends.points] == [("2025-03-02", 3), ("2025-03-09", 1)]

    def test_monthly(self, march) -> None:
        trends = get_sales_trends(auth_for(march), "monthly", start=self.START, end=self.END)

        assert [(p.label, p.orders, p.revenue) for p in trends.points] == [("2025-03", 4, Decimal("40.00"))]

    def test_unknown_period(self, shop) -> None:
        _, owner = shop

        with pytest.raises(ValidationError, match="Period must be one of"):
            get_sales_trends(auth_for(owner), "hourly")


@pytest.mark.django_db
class TestProductAnalytics:
    def test_ranked_by_revenue(self, shop) -> None:
        org, owner = shop
        tee = ProductFactory.create(organization=org, sku="TEE", stock_quantity=3)
        cap = ProductFactory.create(organization=org, sku="CAP", stock_quantity=0)
        bag = ProductFactory.create(organization=org, sku="BAG", stock_quantity=40)
        paid = OrderFactory.create(organization=org)
        shipped = OrderFactory.create(organization=org, status=OrderStatus.SHIPPED)
        cancelled = OrderFactory.create(organization=org, status=OrderStatus.CANCELLED)
        OrderItemFactory.create(
            order=paid, product=tee, sku="TEE", quantity=2, unit_price=Decimal("15.00"), unit_cost=Decimal("5.00")
        )
        OrderItemFactory.create(order=shipped, product=cap, sku="CAP", quantity=5)
        OrderItemFactory.create(order=cancelled, product=bag, sku="BAG", quantity=9)

        report = get_product_analytics(auth_for(owner))

        assert [(p.sku, p.total_sold, p.revenue, p.profit) for p in report.products] == [
            ("CAP", 5, Decimal("50.00"), Decimal("30.00")),
            ("TEE", 2, Decimal("30.00"), Decimal("20.00")),
            ("BAG", 0, Decimal("0.00"), Decimal("0.00")),
        ]
        cap_row, tee_row, bag_row = report.products
        assert cap_row.profit_margin == 60.0
        assert tee_row.profit_margin == 66.67
        assert (cap_row.low_stock, tee_row.low_stock, bag_row.low_stock) == (True, True, False)
        assert bag_row.last_sold is None
        assert tee_row.last_sold == paid.created_at
        assert (report.total_products, report.low_stock_count, report.out_of_stock_count) == (3, 2, 1)

    def test_limit_keeps_catalogue_summary(self, shop) -> None:
        org, owner = shop
        ProductFactory.create_batch(3, organization=org)

        report = get_product_analytics(auth_for(owner), limit=2)

        assert len(report.products) == 2
        assert report.total_products == 3
