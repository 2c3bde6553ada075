"""
Admin configuration for inventory app.
"""

from django.contrib import admin

from apps.inventory.models import Product, StockMovement


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["sku", "name", "organization", "stock_quantity", "sell_price", "warehouse_location"]
    search_fields = ["sku", "name"]
    raw_id_fields = ["organization", "created_by"]


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    """Read-only audit trail."""

    list_display = ["sku", "movement_type", "quantity_change", "quantity_after", "reference", "created_at"]
    list_filter = ["movement_type"]
    search_fields = ["sku", "reference"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False
