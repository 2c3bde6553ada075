"""
Tests for inventory API endpoints and commands.
"""

from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.test import RequestFactory

from apps.inventory.api import (
    adjust_stock,
    create_product,
    list_movements,
    list_product_movements,
    list_products,
    low_stock,
    movement_stats,
)
from apps.inventory.models import Product
from apps.inventory.schemas import AdjustStockRequest, CreateProductRequest
from tests.accounts.factories import OrganizationFactory, make_member
from tests.conftest import auth_for, make_request_with_auth
from tests.inventory.factories import ProductFactory


@pytest.mark.django_db
class TestProductEndpoints:
    def test_create_and_list(self, request_factory: RequestFactory) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        auth = auth_for(owner)

        created = create_product(
            make_request_with_auth(request_factory.post("/api/v1/products"), auth),
            CreateProductRequest(sku="CAP-NV", name="Cap", cost_of_goods=Decimal("3.20"), sell_price=Decimal("12.90")),
        )
        listed = list_products(make_request_with_auth(request_factory.get("/api/v1/products"), auth))

        assert created.sku == "CAP-NV"
        assert created.profit_margin == 75.19
        assert [p.id for p in listed] == [created.id]

    def test_adjust_and_low_stock(self, request_factory: RequestFactory) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        product = ProductFactory.create(organization=org, stock_quantity=12)
        auth = auth_for(owner)

        adjusted = adjust_stock(
            make_request_with_auth(request_factory.post("/"), auth), product.id, AdjustStockRequest(change=-4)
        )
        low = low_stock(make_request_with_auth(request_factory.get("/"), auth))

        assert adjusted.stock_quantity == 8
        assert [p.id for p in low] == [product.id]

    def test_movement_history_and_stats(self, request_factory: RequestFactory) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        product = ProductFactory.create(organization=org, stock_quantity=12)
        auth = auth_for(owner)
        adjust_stock(make_request_with_auth(request_factory.post("/"), auth), product.id, AdjustStockRequest(change=-4))

        history = list_product_movements(make_request_with_auth(request_factory.get("/"), auth), product.id)
        everything = list_movements(make_request_with_auth(request_factory.get("/"), auth))
        stats = movement_stats(make_request_with_auth(request_factory.get("/"), auth))

        assert [(m.quantity_before, m.quantity_after, m.user_name) for m in history] == [(12, 8, owner.name)]
        assert [m.id for m in everything] == [m.id for m in history]
        assert stats.by_type == {"stock_adjustment": 1}
        assert stats.total_stock_out == 4


@pytest.mark.django_db
class TestSeedDemoProductsCommand:
    def test_seeds_by_slug(self) -> None:
        org = OrganizationFactory.create(slug="bunga-mawar")
        out = StringIO()

        call_command("seed_demo_products", "--org", "bunga-mawar", stdout=out)

        assert "5 inserted, 0 skipped" in out.getvalue()
        assert Product.objects.filter(organization=org).count() == 5
