from datetime import datetime, timedelta, timezone
from typing import Optional

from ..repositories.event_repository import EventRepository
from ..schemas.analytics import AnalyticsSummary, EngagementTotals, TopContent
from ..schemas.event import ActionType, ContentType


class AnalyticsService:
    def __init__(self, event_repo: EventRepository):
        self.event_repo = event_repo

    async def get_summary(
        self,
        hours: int = 24,
        limit: int = 10,
        content_type: Optional[ContentType] = None
    ) -> AnalyticsSummary:
        now = datetime.now(timezone.utc)
        since = now - timedelta(hours=hours)

        by_action = await self.event_repo.count_by_action(since)
        by_device = await self.event_repo.count_by_device(since)
        most_viewed = await self.event_repo.get_most_viewed(
            limit, since, content_type.value if content_type else None
        )

        views = by_action.get(ActionType.VIEW.value, 0)
        clicks = by_action.get(ActionType.CLICK.value, 0)
        ctr = (clicks / views * 100) if views > 0 else 0

        return AnalyticsSummary(
            window_hours=hours,
            generated_at=now,
            totals=EngagementTotals(
                events=sum(by_action.values()),
                views=views,
                clicks=clicks,
                plays=by_action.get(ActionType.PLAY.value, 0),
                completions=by_action.get(ActionType.COMPLETE.value, 0),
                ctr_percent=round(ctr, 2),
            ),
            by_action=by_action,
            by_device=by_device,
            most_viewed=[
                TopContent(
                    content_id=row['content_id'],
                    content_type=row['content_type'],
                    content_title=row.get('content_title'),
                    views=int(row['views']),
                )
                for row in most_viewed
            ],
        )
