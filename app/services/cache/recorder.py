"""Access recorder - fire-and-forget log of lookup outcomes."""

import queue
import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta

import duckdb
from loguru import logger

from app.models.cache import AccessEvent, Tier
from app.models.common import utcnow
from app.repositories.cache import AccessEventRepository
from settings import STATS_BATCH_SIZE, STATS_PURGE_INTERVAL, STATS_QUEUE_SIZE, STATS_RETENTION_DAYS


class AccessRecorder:
    """Queues access events and writes them from a background thread.

    ``record`` never blocks and never raises; events that cannot be queued
    or written are dropped with a log line.
    """

    def __init__(
        self,
        events: AccessEventRepository,
        retention_days: int = STATS_RETENTION_DAYS,
        purge_interval: float = STATS_PURGE_INTERVAL,
        batch_size: int = STATS_BATCH_SIZE,
        max_queued: int = STATS_QUEUE_SIZE,
        flush_interval: float = 0.5,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._events = events
        self._retention = timedelta(days=retention_days)
        self._purge_interval = purge_interval
        self._batch_size = batch_size
        self._flush_interval = flush_interval
        self._clock = clock
        self._queue: queue.Queue[AccessEvent] = queue.Queue(maxsize=max_queued)
        self._stopping = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_purge = time.monotonic()
        self.dropped = 0

    def record(self, key: str, dataset_id: str, tier: Tier, response_time_ms: float) -> None:
        """Queue one lookup outcome."""
        event = AccessEvent(key, dataset_id, Tier(tier), round(response_time_ms, 3), self._clock())
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            logger.debug("Access queue full, dropped event for {}", key)

    def flush(self) -> None:
        """Block until every queued event has been written (or dropped)."""
        if self._thread is None:
            self._write_all()
            return
        self._queue.join()

    def purge(self) -> int:
        """Delete events older than the retention window."""
        cutoff = self._clock() - self._retention
        try:
            return self._events.purge_older_than(cutoff)
        except duckdb.Error as e:
            logger.warning("Access event purge failed: {}", e)
            return 0

    def start(self) -> None:
        """Start the background writer."""
        if self._thread is not None:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="access-recorder", daemon=True)
        self._thread.start()
        logger.debug("Access recorder started")

    def stop(self) -> None:
        """Write what is queued and stop the writer."""
        if self._thread is None:
            return
        self._stopping.set()
        self._thread.join(timeout=10.0)
        self._thread = None
        self._write_all()
        logger.debug("Access recorder stopped ({} dropped)", self.dropped)

    def _run(self) -> None:
        while not self._stopping.is_set():
            self._write(self._drain(block=True))
            if time.monotonic() - self._last_purge >= self._purge_interval:
                self._last_purge = time.monotonic()
                self.purge()

    def _write_all(self) -> None:
        """Write queued events batch by batch until the queue is empty."""
        while batch := self._drain(block=False):
            self._write(batch)

    def _drain(self, block: bool) -> list[AccessEvent]:
        batch: list[AccessEvent] = []
        try:
            if block:
                batch.append(self._queue.get(timeout=self._flush_interval))
            while len(batch) < self._batch_size:
                batch.append(self._queue.get_nowait())
        except queue.Empty:
            pass
        return batch

    def _write(self, batch: list[AccessEvent]) -> None:
        if not batch:
            return
        try:
            self._events.insert_many(batch)
        except Exception as e:
            self.dropped += len(batch)
            logger.warning("Failed to save {} access events: {}", len(batch), e)
        finally:
            for _ in batch:
                self._queue.task_done()
