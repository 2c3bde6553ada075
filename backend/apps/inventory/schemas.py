"""
Inventory API schemas.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CreateProductRequest(BaseModel):
    sku: str = Field(..., min_length=1, max_length=64, examples=["TSHIRT-BK-M"])
    name: str = Field(..., min_length=1, max_length=255, examples=["Black Tee - Medium"])
    description: str = ""
    cost_of_goods: Decimal = Field(..., ge=0, examples=["5.50"])
    sell_price: Decimal = Field(..., ge=0, examples=["14.90"])
    stock_quantity: int = Field(0, ge=0)
    warehouse_location: str = Field("", max_length=64, examples=["A1-01"])
    packing_instructions: str = ""
    weight_grams: int | None = Field(None, ge=0)


class AdjustStockRequest(BaseModel):
    change: int = Field(..., description="Signed quantity delta", examples=[-2])
    notes: str = Field("", examples=["Damaged in storage"])


class ProductResponse(BaseModel):
    id: int
    sku: str
    name: str
    description: str
    cost_of_goods: Decimal
    sell_price: Decimal
    profit_margin: float = Field(..., description="Percent of sell price")
    stock_quantity: int
    warehouse_location: str
    packing_instructions: str
    weight_grams: int | None = None
    created_at: datetime
    updated_at: datetime


class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    sku: str
    movement_type: str
    quantity_before: int
    quantity_change: int
    quantity_after: int
    reference: str
    notes: str
    user_name: str | None = None
    created_at: datetime


class MovementStatsResponse(BaseModel):
    total_movements: int
    by_type: dict[str, int]
    total_stock_in: int
    total_stock_out: int
