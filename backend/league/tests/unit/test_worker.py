import asyncio
from unittest.mock import AsyncMock

import pytest

from league.worker import StatsRecalculationWorker


@pytest.fixture
def aggregator():
    return AsyncMock()


@pytest.fixture
async def worker(aggregator):
    w = StatsRecalculationWorker(aggregator, concurrency=2, max_failures=3)
    w.start()
    yield w
    await w.stop()


class TestSubmit:
    async def test_processes_submitted_players(self, worker, aggregator):
        assert worker.submit(["alice", "bob"]) == 2
        await worker.join()

        called = sorted(call.args[0] for call in aggregator.recalculate_player_stats.await_args_list)
        assert called == ["alice", "bob"]
        assert worker.pending_count == 0

    async def test_pending_duplicates_are_coalesced(self, aggregator):
        w = StatsRecalculationWorker(aggregator)
        assert w.submit(["alice", "bob"]) == 2
        assert w.submit(["alice", "carol", "carol"]) == 1
        assert w.pending_count == 3

        w.start()
        await w.join()
        await w.stop()

        assert aggregator.recalculate_player_stats.await_count == 3

    async def test_resubmit_after_pickup_runs_again(self, worker, aggregator):
        worker.submit(["alice"])
        await worker.join()
        worker.submit(["alice"])
        await worker.join()

        assert aggregator.recalculate_player_stats.await_count == 2

    def test_submit_nothing(self, aggregator):
        assert StatsRecalculationWorker(aggregator).submit([]) == 0


class TestFailures:
    async def test_failure_is_recorded_and_worker_keeps_going(self, worker, aggregator):
        async def fail_for_alice(player_id):
            if player_id == "alice":
                raise RuntimeError("boom")

        aggregator.recalculate_player_stats.side_effect = fail_for_alice
        worker.submit(["alice", "bob"])
        await worker.join()

        assert [(f.player_id, f.error) for f in worker.failures] == [("alice", "boom")]
        assert worker.running

        worker.submit(["carol"])
        await worker.join()
        assert aggregator.recalculate_player_stats.await_count == 3

    async def test_failure_history_is_bounded(self, worker, aggregator):
        aggregator.recalculate_player_stats.side_effect = RuntimeError("boom")
        worker.submit([f"p{i}" for i in range(5)])
        await worker.join()

        assert len(worker.failures) == 3


class TestLifecycle:
    async def test_start_is_idempotent(self, aggregator):
        w = StatsRecalculationWorker(aggregator, concurrency=2)
        w.start()
        w.start()
        assert len(w._tasks) == 2
        await w.stop()
        assert not w.running

    async def test_stop_keeps_queued_jobs(self, aggregator):
        w = StatsRecalculationWorker(aggregator)
        w.start()
        await w.stop()
        w.submit(["alice"])

        assert w.pending_count == 1
        with pytest.raises(RuntimeError, match="not running"):
            await w.join()

        w.start()
        await w.join()
        await w.stop()
        aggregator.recalculate_player_stats.assert_awaited_once_with("alice")

    async def test_join_on_empty_queue_returns(self, aggregator):
        w = StatsRecalculationWorker(aggregator)
        await asyncio.wait_for(w.join(), timeout=1)

    def test_rejects_zero_concurrency(self, aggregator):
        with pytest.raises(ValueError, match="concurrency"):
            StatsRecalculationWorker(aggregator, concurrency=0)
