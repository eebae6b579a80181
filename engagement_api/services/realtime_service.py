import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

import redis.asyncio as redis
from aiokafka import AIOKafkaProducer

from ..repositories.event_repository import EventRepository
from ..schemas.analytics import RealtimeSnapshot
from ..schemas.event import ActionType

logger = logging.getLogger(__name__)

# snapshot field each action contributes to
SNAPSHOT_FIELD = {
    ActionType.VIEW: "views",
    ActionType.CLICK: "clicks",
    ActionType.PLAY: "plays",
    ActionType.COMPLETE: "completions",
}


def normalize_action(action) -> Optional[ActionType]:
    if not action:
        return None
    try:
        return ActionType(str(getattr(action, "value", action)).upper())
    except ValueError:
        return None


class RealtimeAnalyticsService:
    """
    Realtime engagement totals for dashboards.

    Actions are buffered and folded into the snapshot at most every
    ``emit_interval`` seconds, or as soon as ``buffer_threshold`` actions are
    waiting. Each new snapshot is cached in Redis and published to Kafka.
    Nothing here is allowed to fail the ingestion path: errors are logged and
    the batch is dropped.
    """

    def __init__(
        self,
        event_repo: EventRepository,
        redis_client: Optional[redis.Redis],
        kafka_producer: Optional[AIOKafkaProducer],
        topic: str,
        cache_key: str,
        emit_interval: float = 5.0,
        buffer_threshold: int = 25,
        snapshot_ttl: float = 60.0,
    ):
        self.event_repo = event_repo
        self.redis_client = redis_client
        self.kafka_producer = kafka_producer
        self.topic = topic
        self.cache_key = cache_key
        self.emit_interval = emit_interval
        self.buffer_threshold = buffer_threshold
        self.snapshot_ttl = snapshot_ttl

        self._buffer: List[ActionType] = []
        self._flush_timer: Optional[asyncio.Task] = None
        self._flush_lock = asyncio.Lock()
        self._snapshot: Optional[RealtimeSnapshot] = None
        self._sequence = 0
        self._hydrated_at = 0.0

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    async def push(self, action_type) -> None:
        action = normalize_action(action_type)
        if action is None:
            return

        self._buffer.append(action)

        if self._flush_timer is None:
            self._flush_timer = asyncio.create_task(self._flush_later(), name="realtime-flush-timer")

        if len(self._buffer) >= self.buffer_threshold:
            await self.flush()

    async def _flush_later(self):
        await asyncio.sleep(self.emit_interval)
        await self.flush()

    async def get_current_snapshot(self) -> RealtimeSnapshot:
        async with self._flush_lock:
            return await self._current_snapshot()

    async def flush(self) -> Optional[RealtimeSnapshot]:
        timer, self._flush_timer = self._flush_timer, None
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()

        async with self._flush_lock:
            if not self._buffer:
                return None

            try:
                snapshot = await self._current_snapshot()
                # Whatever hydration left in the buffer is not in the snapshot yet
                events, self._buffer = self._buffer, []
                counts = snapshot.model_dump(include=set(SNAPSHOT_FIELD.values()))
                for action in events:
                    counts[SNAPSHOT_FIELD[action]] += 1

                next_snapshot = RealtimeSnapshot(
                    **counts,
                    snapshot_id=self._next_id("rt"),
                    updated_at=datetime.now(timezone.utc),
                )
                self._snapshot = next_snapshot
                self._hydrated_at = time.monotonic()

                await self._broadcast(next_snapshot)
                return next_snapshot
            except Exception:
                dropped, self._buffer = len(self._buffer), []
                logger.warning(
                    "Failed to emit realtime analytics snapshot",
                    extra={"dropped_events": dropped},
                    exc_info=True
                )
                return None

    async def close(self):
        """Flush what is still buffered; used at shutdown."""
        await self.flush()

    def _next_id(self, prefix: str) -> str:
        self._sequence += 1
        return f"{prefix}-{self._sequence}"

    async def _current_snapshot(self) -> RealtimeSnapshot:
        """Cached snapshot, or a fresh one from the event log. Caller holds the lock."""
        if self._snapshot is not None and time.monotonic() - self._hydrated_at < self.snapshot_ttl:
            return self._snapshot

        # Buffered actions were written to the log before being pushed, so
        # the totals read below already count them.
        already_logged = len(self._buffer)
        try:
            totals = await self.event_repo.count_by_action()
        except Exception:
            logger.error("Failed to hydrate realtime snapshot from the event log", exc_info=True)
            if self._snapshot is None:
                self._snapshot = RealtimeSnapshot(
                    snapshot_id=self._next_id("fallback"),
                    updated_at=datetime.now(timezone.utc),
                )
            return self._snapshot

        del self._buffer[:already_logged]
        self._snapshot = RealtimeSnapshot(
            **{field: int(totals.get(action.value, 0)) for action, field in SNAPSHOT_FIELD.items()},
            snapshot_id=self._next_id("seed"),
            updated_at=datetime.now(timezone.utc),
        )
        self._hydrated_at = time.monotonic()
        return self._snapshot

    async def _broadcast(self, snapshot: RealtimeSnapshot):
        payload = snapshot.model_dump(mode="json", by_alias=True)

        if self.redis_client is not None:
            await self.redis_client.set(
                self.cache_key,
                snapshot.model_dump_json(by_alias=True),
                ex=int(self.snapshot_ttl)
            )

        if self.kafka_producer is not None:
            await self.kafka_producer.send(self.topic, value=payload, key=b"snapshot")
