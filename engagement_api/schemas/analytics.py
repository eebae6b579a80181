from datetime import datetime
from typing import Dict, List, Optional

from .event import CamelModel


class RealtimeSnapshot(CamelModel):
    """Running engagement totals pushed to realtime subscribers"""
    views: int = 0
    clicks: int = 0
    plays: int = 0
    completions: int = 0
    snapshot_id: str
    updated_at: datetime


class TopContent(CamelModel):
    content_id: str
    content_type: str
    content_title: Optional[str] = None
    views: int


class EngagementTotals(CamelModel):
    events: int
    views: int
    clicks: int
    plays: int
    completions: int
    ctr_percent: float


class AnalyticsSummary(CamelModel):
    window_hours: int
    generated_at: datetime
    totals: EngagementTotals
    by_action: Dict[str, int]
    by_device: Dict[str, int]
    most_viewed: List[TopContent]
