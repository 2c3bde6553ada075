"""
Factories for inventory models.
"""

from decimal import Decimal

import factory
from factory.django import DjangoModelFactory

from apps.inventory.models import Product
from tests.accounts.factories import OrganizationFactory


class ProductFactory(DjangoModelFactory):
    """Factory for Product model."""

    class Meta:
        model = Product

    organization = factory.SubFactory(OrganizationFactory)
    sku = factory.Sequence(lambda n: f"SKU-{n:04d}")
    name = factory.Sequence(lambda n: f"Product {n}")
    cost_of_goods = Decimal("4.00")
    sell_price = Decimal("10.00")
    stock_quantity = 50
    warehouse_location = "A1-01"
