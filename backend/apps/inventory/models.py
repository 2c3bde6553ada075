"""
Inventory models - products and the stock movement audit trail.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models

from apps.core.models import TenantScopedModel


class Product(TenantScopedModel):
    """A sellable item with its warehouse location and stock level."""

    sku = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    cost_of_goods = models.DecimalField(max_digits=12, decimal_places=2)
    sell_price = models.DecimalField(max_digits=12, decimal_places=2)

    stock_quantity = models.PositiveIntegerField(default=0)
    warehouse_location = models.CharField(max_length=64, blank=True)
    packing_instructions = models.TextField(blank=True)
    weight_grams = models.PositiveIntegerField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["organization", "sku"], name="unique_product_sku_per_org"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.sku})"

    @property
    def profit_margin(self) -> Decimal:
        """Margin as a percentage of the sell price."""
        if self.sell_price <= 0:
            return Decimal("0")
        return (self.sell_price - self.cost_of_goods) / self.sell_price * 100


class MovementType(models.TextChoices):
    ORDER_CREATED = "order_created", "Order created"
    ORDER_CANCELLED = "order_cancelled", "Order cancelled"
    STOCK_ADJUSTMENT = "stock_adjustment", "Stock adjustment"
    STOCK_IN = "stock_in", "Stock in"


class StockMovement(TenantScopedModel):
    """Append-only record of a stock quantity change."""

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="movements")
    sku = models.CharField(max_length=64)
    movement_type = models.CharField(max_length=32, choices=MovementType.choices)

    quantity_before = models.IntegerField()
    quantity_change = models.IntegerField()
    quantity_after = models.IntegerField()

    reference = models.CharField(max_length=64, blank=True, help_text="Order number, if any")
    notes = models.TextField(blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.sku} {self.quantity_change:+d} ({self.movement_type})"
