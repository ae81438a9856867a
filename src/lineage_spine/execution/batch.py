"""Batch Executor — bounded thread-pool fan-out with per-item isolation.

WHY
───
A bulk publish runs one build-and-publish unit per entity. The units are
I/O bound (store lookups, channel delivery) and independent, so they run
on a bounded ``ThreadPoolExecutor``. One unit's exception must never reach
the aggregator or its siblings: every item resolves to a
:class:`BatchItem` with either a result or a captured error.

ARCHITECTURE
────────────
::

    BatchExecutor(max_workers=8)
      └── .run(items, handler)   ─ submit one future per item
            ├── copy_context().run(handler, item)  ─ keeps bound log context
            ├── as_completed(futures)              ─ no ordering between items
            └── BatchResult                        ─ succeeded / failed / items

No cancellation and no timeouts: the batch runs to completion. A hung
handler stalls only its own worker.

Example::

    executor = BatchExecutor(max_workers=4)
    result = executor.run(entities, publish_one, key=lambda e: e.id)
    result.succeeded, result.failed   # (3, 1)
    result.results()                  # handler return values, failures omitted
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar

from lineage_spine.core.logging import get_logger

__all__ = ["BatchItem", "BatchResult", "BatchExecutor"]

log = get_logger(__name__)

T = TypeVar("T")


@dataclass
class BatchItem:
    """A single item in a batch."""

    name: str
    status: str = "pending"
    result: Any = None
    error: str | None = None
    error_type: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Wall-clock duration if both timestamps are set."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


@dataclass
class BatchResult:
    """Aggregate result of running a batch."""

    batch_id: str
    items: list[BatchItem]
    started_at: datetime
    completed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def succeeded(self) -> int:
        """Number of items whose handler returned."""
        return sum(1 for i in self.items if i.status == "completed")

    @property
    def failed(self) -> int:
        """Number of items whose handler raised."""
        return sum(1 for i in self.items if i.status == "failed")

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def duration_seconds(self) -> float:
        """Wall-clock duration of the entire batch."""
        return (self.completed_at - self.started_at).total_seconds()

    def results(self) -> list[Any]:
        """Return values of completed items."""
        return [i.result for i in self.items if i.status == "completed"]

    def to_dict(self) -> dict[str, Any]:
        """Serialise for logging / API responses."""
        return {
            "batch_id": self.batch_id,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "duration_seconds": self.duration_seconds,
            "items": [
                {
                    "name": i.name,
                    "status": i.status,
                    "duration_seconds": i.duration_seconds,
                    "error": i.error,
                }
                for i in self.items
            ],
        }


class BatchExecutor:
    """Run a handler over many items on a bounded thread pool.

    Args:
        max_workers: Upper bound on concurrently running handlers
    """

    def __init__(self, max_workers: int = 8) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers

    def run(
        self,
        items: Iterable[T],
        handler: Callable[[T], Any],
        *,
        key: Callable[[T], str] = str,
        name: str = "batch",
    ) -> BatchResult:
        """Run ``handler`` once per item and collect every outcome.

        Handler exceptions are captured on the item and logged; this method
        only raises if the pool itself cannot be created.
        """
        work = list(items)
        batch_id = f"{name}-{uuid.uuid4().hex[:8]}"
        started_at = datetime.now(UTC)
        batch_items = [BatchItem(name=key(item)) for item in work]

        if not work:
            return BatchResult(batch_id=batch_id, items=[], started_at=started_at, completed_at=started_at)

        workers = min(self.max_workers, len(work))
        log.debug("batch.started", batch_id=batch_id, total=len(work), workers=workers)

        def execute(item: T, batch_item: BatchItem) -> None:
            batch_item.status = "running"
            batch_item.started_at = datetime.now(UTC)
            try:
                batch_item.result = handler(item)
                batch_item.status = "completed"
            except Exception as e:
                batch_item.status = "failed"
                batch_item.error = str(e)
                batch_item.error_type = type(e).__name__
                log.error(
                    "batch.item_failed",
                    batch_id=batch_id,
                    item=batch_item.name,
                    error_type=batch_item.error_type,
                    error=batch_item.error,
                )
            finally:
                batch_item.completed_at = datetime.now(UTC)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name) as pool:
            futures = [
                pool.submit(contextvars.copy_context().run, execute, item, batch_item)
                for item, batch_item in zip(work, batch_items, strict=True)
            ]
            for future in as_completed(futures):
                future.result()

        result = BatchResult(batch_id=batch_id, items=batch_items, started_at=started_at)
        log.debug(
            "batch.completed",
            batch_id=batch_id,
            succeeded=result.succeeded,
            failed=result.failed,
            duration_seconds=round(result.duration_seconds, 3),
        )
        return result
