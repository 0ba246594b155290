"""Background worker that keeps PlayerStats in step with recorded sessions."""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from league.aggregator import StatsAggregator

logger = structlog.get_logger()

DEFAULT_MAX_FAILURES = 100


@dataclass(frozen=True)
class RecalculationFailure:
    player_id: str
    error: str
    failed_at: float  # time.time()


class StatsRecalculationWorker:
    """Queue of players whose stats need a full recompute.

    Submitting never blocks and never raises into the caller: the session
    write is the durable event and stats catch up behind it. Jobs run on
    `concurrency` consumer tasks in no particular order. Failures are logged
    and kept in `failures` (most recent last); recalculate_all_stats repairs
    anything left behind.

    Call start() on startup and stop() on shutdown.
    """

    def __init__(
        self,
        aggregator: StatsAggregator,
        *,
        concurrency: int = 4,
        max_failures: int = DEFAULT_MAX_FAILURES,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self._aggregator = aggregator
        self._concurrency = concurrency
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        # Queued but not yet picked up; a second submit for these is redundant.
        self._pending: set[str] = set()
        self._tasks: list[asyncio.Task[None]] = []
        self.failures: deque[RecalculationFailure] = deque(maxlen=max_failures)

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def submit(self, player_ids: Iterable[str]) -> int:
        """Schedule a recompute for each player. Returns how many new jobs were queued."""
        queued = 0
        for player_id in player_ids:
            if player_id in self._pending:
                continue
            self._pending.add(player_id)
            self._queue.put_nowait(player_id)
            queued += 1
        if queued:
            logger.debug("queued stats recalculation", count=queued, pending=len(self._pending))
        return queued

    def start(self) -> None:
        """Start the consumer tasks."""
        if self.running:
            return
        self._tasks = [asyncio.create_task(self._consume()) for _ in range(self._concurrency)]

    async def stop(self) -> None:
        """Cancel the consumer tasks. Jobs still queued stay queued."""
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        if not self.running and not self._queue.empty():
            raise RuntimeError("Stats worker is not running")
        await self._queue.join()

    async def _consume(self) -> None:
        while True:
            player_id = await self._queue.get()
            self._pending.discard(player_id)
            try:
                await self._recalculate(player_id)
            finally:
                self._queue.task_done()

    async def _recalculate(self, player_id: str) -> None:
        try:
            await self._aggregator.recalculate_player_stats(player_id)
        except Exception as e:
            logger.exception("background stats recalculation failed", player_id=player_id)
            self.failures.append(RecalculationFailure(player_id=player_id, error=str(e), failed_at=time.time()))
