"""
Admin configuration for orders app.
"""

from django.contrib import admin

from apps.orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ["product"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["order_number", "organization", "status", "customer_name", "total_price", "created_at"]
    list_filter = ["status", "created_at"]
    search_fields = ["order_number", "customer_name", "recipient_name", "tracking_number"]
    raw_id_fields = ["organization", "created_by", "packed_by"]
    inlines = [OrderItemInline]
