"""
Analytics API endpoints (owner only).
"""

from dataclasses import asdict
from datetime import datetime

from ninja import Router

from apps.analytics import services
from apps.analytics.schemas import DashboardKPIsResponse, ProductAnalyticsReportResponse, SalesTrendsResponse
from apps.core.auth import get_auth_context
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.core.types import AuthenticatedHttpRequest

router = Router(tags=["analytics"])
bearer_auth = BearerAuth()

ANALYTICS_ERRORS = {400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse}


@router.get(
    "/kpis",
    response={200: DashboardKPIsResponse, **ANALYTICS_ERRORS},
    auth=bearer_auth,
    operation_id="getDashboardKPIs",
    summary="Dashboard KPIs",
)
def dashboard_kpis(
    request: AuthenticatedHttpRequest,
    start: datetime | None = None,
    end: datetime | None = None,
) -> DashboardKPIsResponse:
    kpis = services.get_dashboard_kpis(get_auth_context(request), start=start, end=end)
    return DashboardKPIsResponse.model_validate(asdict(kpis))


@router.get(
    "/trends",
    response={200: SalesTrendsResponse, **ANALYTICS_ERRORS},
    auth=bearer_auth,
    operation_id="getSalesTrends",
    summary="Sales per day, week or month",
)
def sales_trends(
    request: AuthenticatedHttpRequest,
    period: str = "daily",
    start: datetime | None = None,
    end: datetime | None = None,
) -> SalesTrendsResponse:
    trends = services.get_sales_trends(get_auth_context(request), period, start=start, end=end)
    return SalesTrendsResponse.model_validate(asdict(trends))


@router.get(
    "/products",
    response={200: ProductAnalyticsReportResponse, **ANALYTICS_ERRORS},
    auth=bearer_auth,
    operation_id="getProductAnalytics",
    summary="Sales per product",
)
def product_analytics(
    request: AuthenticatedHttpRequest,
    limit: int = services.PRODUCT_ANALYTICS_LIMIT,
) -> ProductAnalyticsReportResponse:
    report = services.get_product_analytics(get_auth_context(request), limit=limit)
    return ProductAnalyticsReportResponse.model_validate(asdict(report))
