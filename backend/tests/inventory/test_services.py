"""
Tests for inventory services.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.core.exceptions import AccessDeniedError, NotFoundError, ValidationError
from apps.inventory.models import MovementType, Product, StockMovement
from apps.inventory.services import (
    DEMO_PRODUCTS,
    adjust_stock,
    create_product,
    get_low_stock,
    list_movements,
    list_products,
    movement_stats,
    seed_demo_products,
)
from tests.accounts.factories import OrganizationFactory, make_member
from tests.conftest import auth_for
from tests.inventory.factories import ProductFactory


@pytest.mark.django_db
class TestCreateProduct:
    def test_creates_with_initial_movement(self) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)

        product = create_product(
            auth_for(owner),
            sku=" tshirt-bk-m ",
            name="Black Tee",
            cost_of_goods=Decimal("5.50"),
            sell_price=Decimal("14.90"),
            stock_quantity=40,
        )

        assert product.sku == "TSHIRT-BK-M"
        assert product.organization == org
        movement = StockMovement.objects.get(product=product)
        assert movement.movement_type == MovementType.STOCK_IN
        assert movement.quantity_after == 40

    def test_duplicate_sku(self) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        ProductFactory.create(organization=org, sku="TEE")

        with pytest.raises(ValidationError, match="already exists"):
            create_product(auth_for(owner), sku="tee", name="Tee", cost_of_goods=Decimal(1), sell_price=Decimal(2))

    def test_same_sku_in_other_org_is_allowed(self) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        ProductFactory.create(sku="TEE")

        product = create_product(auth_for(owner), sku="TEE", name="Tee", cost_of_goods=Decimal(1), sell_price=Decimal(2))

        assert product.organization == org

    def test_negative_price(self) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)

        with pytest.raises(ValidationError):
            create_product(auth_for(owner), sku="X", name="X", cost_of_goods=Decimal(-1), sell_price=Decimal(2))

    def test_admin_cannot_create(self) -> None:
        org = OrganizationFactory.create()
        admin = make_member(org, role="admin")

        with pytest.raises(AccessDeniedError):
            create_product(auth_for(admin), sku="X", name="X", cost_of_goods=Decimal(1), sell_price=Decimal(2))


@pytest.mark.django_db
class TestStock:
    def test_list_products_is_tenant_scoped(self) -> None:
        org = OrganizationFactory.create()
        packer = make_member(org, role="packer")
        own = ProductFactory.create(organization=org)
        ProductFactory.create()

        assert list_products(auth_for(packer)) == [own]

    def test_adjust_stock_records_movement(self) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        product = ProductFactory.create(organization=org, stock_quantity=10)

        adjusted = adjust_stock(auth_for(owner), product.id, change=-3, notes="Damaged")

        assert adjusted.stock_quantity == 7
        movement = StockMovement.objects.get(product=product)
        assert (movement.quantity_before, movement.quantity_change, movement.quantity_after) == (10, -3, 7)
        assert movement.user == owner

    def test_adjust_stock_below_zero(self) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        product = ProductFactory.create(organization=org, stock_quantity=2)

        with pytest.raises(ValidationError):
            adjust_stock(auth_for(owner), product.id, change=-3)
        product.refresh_from_db()
        assert product.stock_quantity == 2

    def test_adjust_stock_other_org(self) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        foreign = ProductFactory.create()

        with pytest.raises(NotFoundError):
            adjust_stock(auth_for(owner), foreign.id, change=1)

    def test_low_stock(self) -> None:
        org = OrganizationFactory.create()
        admin = make_member(org, role="admin")
        low = ProductFactory.create(organization=org, stock_quantity=3)
        ProductFactory.create(organization=org, stock_quantity=50)

        assert get_low_stock(auth_for(admin), threshold=5) == [low]

    def test_profit_margin(self) -> None:
        product = Product(cost_of_goods=Decimal("4.00"), sell_price=Decimal("10.00"))

        assert product.profit_margin == Decimal("60")
        assert Product(cost_of_goods=Decimal(1), sell_price=Decimal(0)).profit_margin == 0


@pytest.mark.django_db
class TestSeedDemoProducts:
    def test_seed_is_idempotent(self) -> None:
        org = OrganizationFactory.create()

        first = seed_demo_products(org)
        second = seed_demo_products(org)

        assert len(first.inserted) == len(DEMO_PRODUCTS)
        assert second.inserted == []
        assert len(second.skipped) == len(DEMO_PRODUCTS)
        assert Product.objects.filter(organization=org).count() == len(DEMO_PRODUCTS)


@pytest.mark.django_db
class TestStockMovements:
    @pytest.fixture
    def stocked(self):
        org = OrganizationFactory.create()
        owner = make_member(org)
        tee = ProductFactory.create(organization=org, stock_quantity=10)
        cap = ProductFactory.create(organization=org, stock_quantity=10)
        adjust_stock(auth_for(owner), tee.id, change=-3)
        adjust_stock(auth_for(owner), tee.id, change=5)
        adjust_stock(auth_for(owner), cap.id, change=-1)
        return org, owner, tee, cap

    def test_newest_first(self, stocked) -> None:
        _, owner, tee, cap = stocked

        movements = list_movements(auth_for(owner))

        assert [(m.product_id, m.quantity_change) for m in movements] == [(cap.id, -1), (tee.id, 5), (tee.id, -3)]

    def test_by_product(self, stocked) -> None:
        _, owner, tee, _ = stocked

        movements = list_movements(auth_for(owner), product_id=tee.id, limit=1)

        assert [m.quantity_change for m in movements] == [5]

    def test_date_range(self, stocked) -> None:
        _, owner, tee, _ = stocked
        first = StockMovement.objects.filter(product=tee, quantity_change=-3).get()
        StockMovement.objects.filter(id=first.id).update(created_at=timezone.now() - timedelta(days=10))

        recent = list_movements(auth_for(owner), start=timezone.now() - timedelta(days=1))
        older = list_movements(auth_for(owner), end=timezone.now() - timedelta(days=5))

        assert first.id not in [m.id for m in recent]
        assert [m.id for m in older] == [first.id]

    def test_other_org_product(self, stocked) -> None:
        _, owner, _, _ = stocked
        foreign = ProductFactory.create()

        with pytest.raises(NotFoundError):
            list_movements(auth_for(owner), product_id=foreign.id)

    def test_stats(self, stocked) -> None:
        _, owner, _, _ = stocked
        foreign = ProductFactory.create()
        StockMovement.objects.create(
            organization=foreign.organization,
            product=foreign,
            sku="OTHER",
            movement_type=MovementType.STOCK_IN,
            quantity_before=0,
            quantity_change=100,
            quantity_after=100,
        )

        stats = movement_stats(auth_for(owner))

        assert stats.total_movements == 3
        assert stats.by_type == {"stock_adjustment": 3}
        assert stats.total_stock_in == 5
        assert stats.total_stock_out == 4

    def test_stats_empty(self) -> None:
        owner = make_member(OrganizationFactory.create())

        stats = movement_stats(auth_for(owner))

        assert (stats.total_movements, stats.by_type, stats.total_stock_in, stats.total_stock_out) == (0, {}, 0, 0)

    def test_admin_denied(self, stocked) -> None:
        org, _, _, _ = stocked
        admin = make_member(org, role="admin")

        with pytest.raises(AccessDeniedError):
            list_movements(auth_for(admin))
        with pytest.raises(AccessDeniedError):
            movement_stats(auth_for(admin))
