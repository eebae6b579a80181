from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_analytics_service, get_realtime_service
from ..schemas.analytics import AnalyticsSummary, RealtimeSnapshot
from ..schemas.event import ContentType
from ..services.analytics_service import AnalyticsService
from ..services.realtime_service import RealtimeAnalyticsService

router = APIRouter()


@router.get("/api/analytics/realtime", response_model=RealtimeSnapshot)
async def get_realtime_snapshot(
    service: RealtimeAnalyticsService = Depends(get_realtime_service)
):
    """Latest realtime engagement totals"""
    return await service.get_current_snapshot()


@router.get("/api/analytics/summary", response_model=AnalyticsSummary)
async def get_summary(
    hours: int = Query(24, ge=1, le=24 * 90),
    limit: int = Query(10, ge=1, le=100),
    content_type: Optional[ContentType] = Query(None, alias="contentType"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Engagement summary over the last `hours`; `contentType` narrows the most viewed list"""
    return await service.get_summary(hours, limit, content_type)
