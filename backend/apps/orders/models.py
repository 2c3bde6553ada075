"""
Orders models - customer orders and their item snapshots.
"""

from django.conf import settings
from django.db import models

from apps.core.models import TenantScopedModel


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class Order(TenantScopedModel):
    """
    A customer order.

    Totals are computed from the item snapshots at creation time and do not
    follow later product price changes.
    """

    order_number = models.CharField(max_length=32, help_text="e.g. 'ORD-00001'")
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )

    customer_name = models.CharField(max_length=255)
    customer_phone = models.CharField(max_length=64, blank=True)
    customer_email = models.EmailField(blank=True)

    recipient_name = models.CharField(max_length=255)
    recipient_phone = models.CharField(max_length=64)
    recipient_address = models.TextField()
    recipient_city = models.CharField(max_length=128)
    recipient_province = models.CharField(max_length=128)
    recipient_postal_code = models.CharField(max_length=32)
    recipient_country = models.CharField(max_length=64)

    total_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_profit = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    weight_grams = models.PositiveIntegerField(null=True, blank=True)
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    tracking_number = models.CharField(max_length=128, blank=True)
    courier_service = models.CharField(max_length=128, blank=True)

    raw_chat_log = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_orders",
    )
    packed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="packed_orders",
    )

    paid_at = models.DateTimeField(null=True, blank=True)
    packed_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["organization", "order_number"], name="unique_order_number_per_org"),
        ]
        indexes = [
            models.Index(fields=["organization", "created_at"], name="order_org_created_idx"),
        ]

    def __str__(self) -> str:
        return self.order_number


class OrderItem(models.Model):
    """Product snapshot within an order."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.SET_NULL,
        null=True,
        related_name="order_items",
    )
    sku = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.sku}"
