"""
How concurrent work is executed.

A search submits two independent calls (the lexical lane and the query
embedding) and bulk ingestion submits one embedding call per chunk. Both
go through an ExecutorStrategy, so the caller decides whether they run on
worker threads or inline:

    retriever = HybridRetriever(store, provider, strategy=ThreadPoolStrategy(max_workers=2))
    retriever = HybridRetriever(store, provider, strategy=SequentialStrategy())  # tests

Either way the caller gets a Future back and waits on it the same way.
"""

import os
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable


class ExecutorStrategy(ABC):
    """
    Interface shared by the execution strategies.

    Attributes:
        max_workers: Calls that may run at the same time (1 when inline)
    """

    max_workers: int

    @abstractmethod
    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        """Schedule ``fn(*args, **kwargs)`` and return its Future."""
        pass

    @abstractmethod
    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """
        Release workers.

        Args:
            wait: Block until running calls finish
            cancel_futures: Drop calls that have not started yet
        """
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(max_workers={self.max_workers})"


class ThreadPoolStrategy(ExecutorStrategy):
    """
    Runs calls on a pool of worker threads.

    Index lookups and embedding requests spend their time waiting on I/O
    or in native code, so threads overlap them well.

    Args:
        max_workers: Pool size; defaults to the CPU count capped at 4
    """

    def __init__(self, max_workers: int | None = None):
        if max_workers is None:
            max_workers = min(os.cpu_count() or 4, 4)
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self.max_workers = max_workers
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="retrieval")

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        return self._pool.submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self._pool.shutdown(wait=wait, cancel_futures=cancel_futures)


class SequentialStrategy(ExecutorStrategy):
    """
    Runs every call inline on the submitting thread.

    The returned Future is already resolved, with the call's result or the
    exception it raised, so timeouts never trigger and lane order is fixed.
    """

    max_workers = 1

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """Nothing to release."""
