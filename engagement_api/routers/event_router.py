from fastapi import APIRouter, Depends, Request

from ..config import settings
from ..dependencies import get_event_service
from ..limiter import limiter
from ..middleware import client_ip
from ..schemas.event import EventRecord, TrackEventRequest
from ..services.event_service import EventService

router = APIRouter()

MAX_USER_AGENT_LENGTH = 512


@router.post("/api/analytics/track", response_model=EventRecord)
@limiter.limit(settings.TRACK_RATE_LIMIT)
async def track_event(
    event: TrackEventRequest,
    request: Request,  # Required for limiter
    service: EventService = Depends(get_event_service)
):
    """
    Track a content interaction (view, click, play, complete)
    """
    updates = {}
    if event.ip_address is None:
        updates["ip_address"] = client_ip(request)
    if event.user_agent is None:
        header = request.headers.get("user-agent")
        updates["user_agent"] = header[:MAX_USER_AGENT_LENGTH] if header else None
    if updates:
        event = event.model_copy(update=updates)

    return await service.track_event(event)
