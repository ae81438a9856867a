"""
Tests for BatchExecutor.

Tests verify:
- Every item runs and its outcome is recorded
- A raising handler fails only its own item
- Bound log context reaches worker threads
- Concurrency stays within max_workers
"""

import threading
import time

import pytest
import structlog

from lineage_spine.core.logging import LogContext, clear_context
from lineage_spine.execution import BatchExecutor, BatchResult


class TestBatchExecutor:
    def test_rejects_zero_workers(self):
        with pytest.raises(ValueError):
            BatchExecutor(max_workers=0)

    def test_empty_input(self):
        result = BatchExecutor().run([], lambda x: x)
        assert isinstance(result, BatchResult)
        assert result.total == 0
        assert result.results() == []

    def test_all_items_run(self):
        result = BatchExecutor(max_workers=3).run(range(10), lambda x: x * 2)
        assert result.succeeded == 10
        assert sorted(result.results()) == [x * 2 for x in range(10)]

    def test_failure_is_isolated(self):
        def handler(x):
            if x == 3:
                raise RuntimeError("bad item")
            return x

        result = BatchExecutor(max_workers=4).run(range(6), handler, key=lambda x: f"item-{x}")
        assert result.succeeded == 5
        assert result.failed == 1
        [failed] = [i for i in result.items if i.status == "failed"]
        assert failed.name == "item-3"
        assert failed.error == "bad item"
        assert failed.error_type == "RuntimeError"
        assert 3 not in result.results()

    def test_items_keep_input_order(self):
        result = BatchExecutor().run(["b", "a", "c"], str.upper)
        assert [i.name for i in result.items] == ["b", "a", "c"]

    def test_respects_max_workers(self):
        lock = threading.Lock()
        running = 0
        peak = 0

        def handler(_):
            nonlocal running, peak
            with lock:
                running += 1
                peak = max(peak, running)
            time.sleep(0.01)
            with lock:
                running -= 1

        BatchExecutor(max_workers=2).run(range(8), handler)
        assert peak <= 2

    def test_log_context_reaches_workers(self):
        clear_context()
        seen = []

        def handler(_):
            seen.append(structlog.contextvars.get_contextvars().get("request_id"))

        with LogContext(request_id="r-42"):
            BatchExecutor(max_workers=2).run(range(3), handler)
        clear_context()
        assert seen == ["r-42"] * 3

    def test_to_dict(self):
        result = BatchExecutor().run([1], lambda x: x, name="demo")
        d = result.to_dict()
        assert d["batch_id"].startswith("demo-")
        assert d["total"] == 1
        assert d["items"][0]["status"] == "completed"
        assert result.items[0].duration_seconds is not None
