import asyncpg
import redis.asyncio as redis
from aiokafka import AIOKafkaProducer
import json
import logging

from fastapi import Depends

from .config import Settings
from .models.content import MovieDB, TVSeriesDB
from .repositories.content_repository import ContentRepository
from .repositories.event_repository import EventRepository
from .schemas.event import ContentType
from .services.analytics_service import AnalyticsService
from .services.content_counter_service import ContentCounterService
from .services.event_service import EventService
from .services.realtime_service import RealtimeAnalyticsService
from .services.task_supervisor import BackgroundTaskSupervisor

logger = logging.getLogger(__name__)


# Global state for connections and process-wide services
class AppState:
    pg_pool: asyncpg.Pool = None
    redis_client: redis.Redis = None
    kafka_producer: AIOKafkaProducer = None
    supervisor: BackgroundTaskSupervisor = None
    realtime_service: RealtimeAnalyticsService = None


state = AppState()


async def init_resources(config: Settings):
    """Initialize all resources"""
    state.pg_pool = await asyncpg.create_pool(
        config.DATABASE_URL,
        min_size=config.DB_POOL_MIN_SIZE,
        max_size=config.DB_POOL_MAX_SIZE,
        command_timeout=60
    )
    await EventRepository(state.pg_pool).create_schema()

    state.redis_client = await redis.from_url(
        config.REDIS_URL,
        encoding="utf-8",
        decode_responses=True
    )

    state.kafka_producer = AIOKafkaProducer(
        bootstrap_servers=config.KAFKA_BOOTSTRAP_SERVERS,
        value_serializer=lambda v: json.dumps(v).encode('utf-8')
    )
    await state.kafka_producer.start()

    state.supervisor = BackgroundTaskSupervisor()
    state.realtime_service = RealtimeAnalyticsService(
        EventRepository(state.pg_pool),
        state.redis_client,
        state.kafka_producer,
        topic=config.KAFKA_TOPIC_ANALYTICS,
        cache_key=config.REALTIME_SNAPSHOT_CACHE_KEY,
        emit_interval=config.REALTIME_EMIT_INTERVAL_SECONDS,
        buffer_threshold=config.REALTIME_BUFFER_THRESHOLD,
        snapshot_ttl=config.REALTIME_SNAPSHOT_TTL_SECONDS,
    )
    logger.info("All connections initialized")


async def close_resources(config: Settings):
    """Flush pending side effects, then close all resources"""
    if state.supervisor:
        await state.supervisor.drain(timeout=config.SHUTDOWN_DRAIN_TIMEOUT_SECONDS)
    if state.realtime_service:
        await state.realtime_service.close()
    if state.kafka_producer:
        await state.kafka_producer.stop()
    if state.redis_client:
        await state.redis_client.aclose()
    if state.pg_pool:
        await state.pg_pool.close()
    logger.info("All connections closed")


# Dependencies
async def get_db_pool() -> asyncpg.Pool:
    return state.pg_pool


async def get_supervisor() -> BackgroundTaskSupervisor:
    return state.supervisor


async def get_realtime_service() -> RealtimeAnalyticsService:
    return state.realtime_service


async def get_event_service(
    db = Depends(get_db_pool),
    realtime_service = Depends(get_realtime_service),
    supervisor = Depends(get_supervisor)
) -> EventService:
    counter_service = ContentCounterService({
        ContentType.MOVIE: ContentRepository(db, MovieDB.__table__),
        ContentType.SERIES: ContentRepository(db, TVSeriesDB.__table__),
    })
    return EventService(EventRepository(db), counter_service, realtime_service, supervisor)


async def get_analytics_service(db = Depends(get_db_pool)) -> AnalyticsService:
    return AnalyticsService(EventRepository(db))
