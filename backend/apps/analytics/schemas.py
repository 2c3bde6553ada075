"""
Analytics API schemas.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class KpiSummaryResponse(BaseModel):
    total_orders: int
    shipped_orders: int
    cancelled_orders: int
    completion_rate: float = Field(..., description="Percent of orders shipped or delivered")
    total_revenue: Decimal
    total_profit: Decimal
    average_order_value: Decimal
    profit_margin: float = Field(..., description="Percent of revenue")


class ProductPerformanceResponse(BaseModel):
    sku: str
    name: str
    sold: int
    stock_remaining: int | None = None


class PackerPerformanceResponse(BaseModel):
    user_id: int
    name: str
    orders_packed: int
    avg_packing_minutes: float


class DashboardKPIsResponse(BaseModel):
    start: datetime
    end: datetime
    summary: KpiSummaryResponse
    top_products: list[ProductPerformanceResponse]
    top_packers: list[PackerPerformanceResponse]


class TrendPointResponse(BaseModel):
    period_start: date
    label: str = Field(..., examples=["2025-03-01", "2025-03"])
    orders: int
    revenue: Decimal
    profit: Decimal


class SalesTrendsResponse(BaseModel):
    period: str
    start: datetime
    end: datetime
    points: list[TrendPointResponse]
    total_orders: int
    total_revenue: Decimal
    average_daily_orders: float


class ProductAnalyticsResponse(BaseModel):
    product_id: int
    sku: str
    name: str
    current_stock: int
    total_sold: int
    revenue: Decimal
    profit: Decimal
    profit_margin: float
    low_stock: bool
    last_sold: datetime | None = None


class ProductAnalyticsReportResponse(BaseModel):
    products: list[ProductAnalyticsResponse]
    total_products: int
    low_stock_count: int
    out_of_stock_count: int
