"""
Briefing and notification API schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class DailyBriefingResponse(BaseModel):
    briefing: str = Field(..., description="Plain-text briefing")
    data: dict[str, Any] = Field(..., description="Aggregates the briefing was generated from")
    generated_at: datetime
    used_fallback: bool = Field(..., description="True when the deterministic formatter was used")


class QuickStatsResponse(BaseModel):
    today_orders: int
    today_revenue: float
    today_profit: float
    pending_orders: int
    low_stock_count: int
    top_product: str


class NotificationStateResponse(BaseModel):
    last_seen_at: datetime | None = None
    has_seen: bool


class MarkSeenResponse(BaseModel):
    success: bool = True
    created: bool = Field(..., description="True when this was the user's first visit")
