import logging

from ..repositories.event_repository import EventRepository
from ..schemas.event import EventDraft, EventRecord, TrackEventRequest
from .content_counter_service import ContentCounterService
from .device_classifier import classify_device
from .realtime_service import RealtimeAnalyticsService
from .task_supervisor import BackgroundTaskSupervisor

logger = logging.getLogger(__name__)


class EventService:
    def __init__(
        self,
        event_repo: EventRepository,
        counter_service: ContentCounterService,
        realtime_service: RealtimeAnalyticsService,
        supervisor: BackgroundTaskSupervisor
    ):
        self.event_repo = event_repo
        self.counter_service = counter_service
        self.realtime_service = realtime_service
        self.supervisor = supervisor

    async def track_event(self, event: TrackEventRequest) -> EventRecord:
        """
        Record one content interaction.

        Only the write to the event log is awaited; a failure there is raised
        unchanged and nothing else runs. Counter aggregation and the realtime
        push are spawned afterwards and never affect the result.
        """
        draft = EventDraft(
            content_id=event.content_id,
            content_type=event.content_type,
            action_type=event.action_type,
            content_title=event.content_title,
            duration=event.duration,
            user_id=event.user_id,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            device_type=classify_device(event.user_agent),
            country=event.country,
            metadata=event.metadata if event.metadata is not None else {},
        )

        record = await self.event_repo.append(draft)

        self.supervisor.spawn(
            self.counter_service.apply(record.content_type, record.content_id, record.action_type),
            name=f"content-counters:{record.id}"
        )
        self.supervisor.spawn(
            self.realtime_service.push(record.action_type),
            name=f"realtime-push:{record.id}"
        )

        logger.info(
            "Event tracked",
            extra={
                "event_id": record.id,
                "content_id": record.content_id,
                "action_type": record.action_type.value,
                "device_type": record.device_type.value,
            }
        )
        return record
