import pytest
import pytest_asyncio
from datetime import datetime, timezone
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock

from engagement_api.main import app
from engagement_api.dependencies import get_db_pool, get_realtime_service, get_supervisor
from engagement_api.schemas.event import EventDraft, EventRecord
from engagement_api.services.realtime_service import RealtimeAnalyticsService
from engagement_api.services.task_supervisor import BackgroundTaskSupervisor

CREATED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_record(draft: EventDraft, event_id: int = 1) -> EventRecord:
    return EventRecord(**draft.model_dump(), id=event_id, created_at=CREATED_AT)


@pytest.fixture
def mock_db_pool():
    return AsyncMock()


@pytest.fixture
def mock_realtime():
    return AsyncMock(spec=RealtimeAnalyticsService)


@pytest.fixture
def supervisor():
    return BackgroundTaskSupervisor()


@pytest_asyncio.fixture
async def client(mock_db_pool, mock_realtime, supervisor):
    # Override dependencies
    app.dependency_overrides[get_db_pool] = lambda: mock_db_pool
    app.dependency_overrides[get_realtime_service] = lambda: mock_realtime
    app.dependency_overrides[get_supervisor] = lambda: supervisor

    transport = ASGITransport(app=app)
    from engagement_api.limiter import limiter
    limiter.enabled = False
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    limiter.enabled = True

    await supervisor.drain(timeout=1)
    app.dependency_overrides = {}
