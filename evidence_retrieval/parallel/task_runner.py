"""
Batch runner for ingestion work such as embedding every chunk of a corpus.

Each payload becomes one call through an ExecutorStrategy. The strategy's
worker count is the permit pool: no more than ``max_workers`` calls reach
the collaborator at once. Outcomes are reported per task, so one text that
crashes the model does not lose the rest of the batch.

Usage:
    runner = ParallelTaskRunner(ThreadPoolStrategy(max_workers=4))
    outcomes = runner.run(provider.embed, [(chunk.id, chunk.text) for chunk in chunks])
    vectors = {o.task_id: o.result for o in outcomes if o.success}
"""

import threading
from concurrent.futures import Future, as_completed
from dataclasses import dataclass
from typing import Any, Callable

from evidence_retrieval.parallel.executor_strategy import ExecutorStrategy


@dataclass
class TaskResult:
    """
    Outcome of one task.

    Attributes:
        task_id: Caller-chosen key (a chunk id, a list index, ...)
        success: False if the call raised
        result: Return value when successful
        error: The exception when not
    """

    task_id: str
    success: bool
    result: Any = None
    error: Exception | None = None


class ParallelTaskRunner:
    """
    Fans a function out over (task_id, payload) pairs.

    Args:
        strategy: Where the calls run
        on_task_complete: Called as ``(task_id, result)`` after each success
    """

    def __init__(
        self,
        strategy: ExecutorStrategy,
        on_task_complete: Callable[[str, Any], None] | None = None,
    ):
        self.strategy = strategy
        self.on_task_complete = on_task_complete
        self._cancelled = threading.Event()

    def _outcome(self, task_id: str, future: Future) -> TaskResult:
        try:
            value = future.result()
        except Exception as e:
            return TaskResult(task_id=task_id, success=False, error=e)

        if self.on_task_complete is not None:
            self.on_task_complete(task_id, value)
        return TaskResult(task_id=task_id, success=True, result=value)

    def run(self, fn: Callable[[Any], Any], items: list[tuple[str, Any]]) -> list[TaskResult]:
        """
        Call ``fn(payload)`` for every item.

        Returns:
            One TaskResult per finished task, in completion order. After
            cancel() no further tasks are submitted or collected.
        """
        pending: dict[Future, str] = {}
        for task_id, payload in items:
            if self._cancelled.is_set():
                break
            pending[self.strategy.submit(fn, payload)] = task_id

        outcomes: list[TaskResult] = []
        for future in as_completed(pending):
            if self._cancelled.is_set():
                break
            outcomes.append(self._outcome(pending[future], future))
        return outcomes

    def cancel(self) -> None:
        """Stop submitting and drop tasks that have not started."""
        self._cancelled.set()
        self.strategy.shutdown(wait=False, cancel_futures=True)

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()
