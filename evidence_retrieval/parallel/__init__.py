"""
Concurrency for the retrieval engine.

At query time the lexical lane and the query embedding are submitted
together through an ExecutorStrategy and awaited with a timeout. At
ingestion time ParallelTaskRunner fans embedding calls out over a
fixed-size ThreadPoolStrategy, whose worker count caps the load on the
embedding model. Tests swap in SequentialStrategy for both.
"""

from evidence_retrieval.parallel.executor_strategy import (
    ExecutorStrategy,
    SequentialStrategy,
    ThreadPoolStrategy,
)
from evidence_retrieval.parallel.task_runner import ParallelTaskRunner, TaskResult

__all__ = [
    "ExecutorStrategy",
    "ThreadPoolStrategy",
    "SequentialStrategy",
    "ParallelTaskRunner",
    "TaskResult",
]
