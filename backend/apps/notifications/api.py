"""
Briefing and notification API endpoints.
"""

from ninja import Router

from apps.accounts.models import Role
from apps.core.auth import get_auth_context
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.core.types import AuthenticatedHttpRequest
from apps.notifications import services
from apps.notifications.schemas import (
    DailyBriefingResponse,
    MarkSeenResponse,
    NotificationStateResponse,
    QuickStatsResponse,
)

briefing_router = Router(tags=["briefing"])
router = Router(tags=["notifications"])
bearer_auth = BearerAuth()


@briefing_router.get(
    "/daily",
    response={200: DailyBriefingResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="getDailyBriefing",
    summary="Generate today's briefing",
)
def daily_briefing(request: AuthenticatedHttpRequest) -> DailyBriefingResponse:
    """Owner only. Falls back to a deterministic report when the LLM is unavailable."""
    _, org = get_auth_context(request).require_role(Role.OWNER)
    result = services.generate_daily_briefing(org)
    return DailyBriefingResponse(
        briefing=result.text,
        data=result.data.to_dict(),
        generated_at=result.generated_at,
        used_fallback=result.used_fallback,
    )


@briefing_router.get(
    "/quick-stats",
    response={200: QuickStatsResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="getQuickStats",
    summary="Compact stats for today",
)
def quick_stats(request: AuthenticatedHttpRequest) -> QuickStatsResponse:
    _, org = get_auth_context(request).require_role(Role.OWNER)
    stats = services.get_quick_stats(org)
    return QuickStatsResponse(
        today_orders=stats.today_orders,
        today_revenue=stats.today_revenue,
        today_profit=stats.today_profit,
        pending_orders=stats.pending_orders,
        low_stock_count=stats.low_stock_count,
        top_product=stats.top_product,
    )


@router.get(
    "/state",
    response={200: NotificationStateResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="getNotificationState",
    summary="When notifications were last seen",
)
def notification_state(request: AuthenticatedHttpRequest) -> NotificationStateResponse:
    state = services.get_notification_state(get_auth_context(request))
    return NotificationStateResponse(last_seen_at=state.last_seen_at, has_seen=state.has_seen)


@router.post(
    "/seen",
    response={200: MarkSeenResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="markNotificationsSeen",
    summary="Mark notifications as seen",
)
def mark_seen(request: AuthenticatedHttpRequest) -> MarkSeenResponse:
    created = services.mark_notifications_seen(get_auth_context(request))
    return MarkSeenResponse(created=created)
