"""Execution primitives for fan-out work."""

from lineage_spine.execution.batch import BatchExecutor, BatchItem, BatchResult

__all__ = ["BatchExecutor", "BatchItem", "BatchResult"]
