import asyncio

import pytest
from unittest.mock import AsyncMock

from conftest import make_record
from engagement_api.exceptions import PersistenceError
from engagement_api.repositories.event_repository import EventRepository
from engagement_api.schemas.event import ActionType, ContentType, DeviceType, TrackEventRequest
from engagement_api.services.content_counter_service import ContentCounterService
from engagement_api.services.event_service import EventService
from engagement_api.services.realtime_service import RealtimeAnalyticsService
from engagement_api.services.task_supervisor import BackgroundTaskSupervisor


@pytest.fixture
def mock_event_repo():
    repo = AsyncMock(spec=EventRepository)

    async def append(draft):
        return make_record(draft, event_id=7)

    repo.append.side_effect = append
    return repo


@pytest.fixture
def mock_counter_service():
    return AsyncMock(spec=ContentCounterService)


@pytest.fixture
def mock_realtime_service():
    return AsyncMock(spec=RealtimeAnalyticsService)


@pytest.fixture
def service(mock_event_repo, mock_counter_service, mock_realtime_service, supervisor):
    return EventService(mock_event_repo, mock_counter_service, mock_realtime_service, supervisor)


@pytest.mark.asyncio
async def test_track_event_applies_defaults(service, mock_event_repo):
    # Arrange
    event = TrackEventRequest(contentId="123", contentType="movie", actionType="VIEW", country="US")

    # Act
    record = await service.track_event(event)

    # Assert
    assert record.id == 7
    assert record.content_id == "123"
    assert record.content_type == ContentType.MOVIE
    assert record.action_type == ActionType.VIEW
    assert record.device_type == DeviceType.UNKNOWN
    assert record.country == "US"
    assert record.metadata == {}
    assert record.duration is None
    assert record.ip_address is None
    assert record.user_agent is None
    mock_event_repo.append.assert_awaited_once()


@pytest.mark.asyncio
async def test_track_event_passes_fields_through(service, mock_event_repo):
    event = TrackEventRequest(
        content_id="789",
        content_type=ContentType.MOVIE,
        action_type=ActionType.PLAY,
        content_title="Test Movie",
        duration=120,
        user_id=3,
        ip_address="192.168.1.1",
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
        metadata={"source": "detail_page", "quality": {"height": 1080}},
    )

    record = await service.track_event(event)

    draft = mock_event_repo.append.call_args.args[0]
    assert draft.duration == 120
    assert draft.user_id == 3
    assert draft.ip_address == "192.168.1.1"
    assert draft.content_title == "Test Movie"
    assert draft.metadata == {"source": "detail_page", "quality": {"height": 1080}}
    assert draft.country is None
    assert record.device_type == DeviceType.DESKTOP


@pytest.mark.asyncio
async def test_track_event_classifies_mobile_user_agent(service):
    event = TrackEventRequest(
        content_id="123",
        content_type="movie",
        action_type="VIEW",
        user_agent="Mozilla/5.0 (iPhone; Mobile Safari/605.1)",
    )

    record = await service.track_event(event)

    assert record.device_type == DeviceType.MOBILE


@pytest.mark.asyncio
async def test_explicit_empty_country_is_kept(service):
    event = TrackEventRequest(content_id="123", content_type="movie", action_type="CLICK", country="")

    record = await service.track_event(event)

    assert record.country == ""


@pytest.mark.asyncio
async def test_background_work_is_scheduled_after_persisting(
    service, mock_counter_service, mock_realtime_service, supervisor
):
    event = TrackEventRequest(content_id="456", content_type="series", action_type="CLICK")

    await service.track_event(event)
    await supervisor.drain(timeout=1)

    mock_counter_service.apply.assert_awaited_once_with(ContentType.SERIES, "456", ActionType.CLICK)
    mock_realtime_service.push.assert_awaited_once_with(ActionType.CLICK)


@pytest.mark.asyncio
async def test_track_event_does_not_wait_for_background_work(service, mock_counter_service, supervisor):
    release = asyncio.Event()

    async def slow_apply(*args):
        await release.wait()

    mock_counter_service.apply.side_effect = slow_apply
    event = TrackEventRequest(content_id="123", content_type="movie", action_type="VIEW")

    record = await service.track_event(event)

    assert record.id == 7
    assert supervisor.pending == 2

    release.set()
    assert await supervisor.drain(timeout=1) == 0
    assert supervisor.pending == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [PersistenceError("insert failed"), RuntimeError("pool closed")])
async def test_persistence_failure_propagates_unchanged(
    service, mock_event_repo, mock_counter_service, mock_realtime_service, supervisor, error
):
    mock_event_repo.append.side_effect = error
    event = TrackEventRequest(content_id="123", content_type="movie", action_type="VIEW")

    with pytest.raises(type(error)) as exc:
        await service.track_event(event)

    assert exc.value is error
    assert supervisor.pending == 0
    mock_counter_service.apply.assert_not_called()
    mock_realtime_service.push.assert_not_called()


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_tracking(
    service, mock_realtime_service, mock_counter_service, supervisor
):
    mock_realtime_service.push.side_effect = RuntimeError("broker unreachable")
    event = TrackEventRequest(content_id="123", content_type="movie", action_type="VIEW")

    record = await service.track_event(event)
    await supervisor.drain(timeout=1)

    assert record.id == 7
    mock_counter_service.apply.assert_awaited_once()
