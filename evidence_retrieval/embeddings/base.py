"""
Base class for embedding providers.

An embedding provider maps text to a fixed-dimension vector. A provider may
be unavailable on any given call; it reports that by returning None rather
than raising, so the semantic lane can be skipped without an error reaching
the caller of a search.

Example:
    class MyProvider(EmbeddingProvider):
        name = "my-model"

        def embed(self, text: str) -> np.ndarray | None:
            ...
"""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from evidence_retrieval.config import EMBEDDING_CONCURRENCY
from evidence_retrieval.logging_config import debug_log, warning
from evidence_retrieval.parallel import (
    ExecutorStrategy,
    ParallelTaskRunner,
    ThreadPoolStrategy,
)


class EmbeddingProvider(ABC):
    """
    Abstract base class for text embedding providers.

    Class Attributes:
        name: Human-readable provider name (for logging)
        dimensions: Vector length, or None until known
    """

    name: str = "BaseEmbeddingProvider"
    dimensions: int | None = None

    @abstractmethod
    def embed(self, text: str) -> np.ndarray | None:
        """
        Embed a single text.

        Args:
            text: Text to embed

        Returns:
            1-D float vector, or None if the provider is unavailable or the
            text cannot be embedded (e.g. it is empty)
        """
        pass

    def embed_many(
        self,
        texts: list[str],
        max_concurrency: int = EMBEDDING_CONCURRENCY,
        strategy: ExecutorStrategy | None = None,
    ) -> list[np.ndarray | None]:
        """
        Embed many texts with at most ``max_concurrency`` calls in flight.

        Failures are isolated per text: a text whose call raises or returns
        None gets None in its slot.

        Args:
            texts: Texts to embed
            max_concurrency: Size of the permit pool (ignored if strategy given)
            strategy: Optional execution strategy (tests inject SequentialStrategy)

        Returns:
            Vectors aligned with ``texts``
        """
        if not texts:
            return []

        owns_strategy = strategy is None
        if owns_strategy:
            strategy = ThreadPoolStrategy(max_workers=max(1, max_concurrency))

        vectors: list[np.ndarray | None] = [None] * len(texts)
        try:
            runner = ParallelTaskRunner(strategy=strategy)
            results = runner.run(self.embed, [(str(i), text) for i, text in enumerate(texts)])
        finally:
            if owns_strategy:
                strategy.shutdown(wait=True)

        failures = 0
        for result in results:
            if result.success:
                vectors[int(result.task_id)] = result.result
            else:
                failures += 1
                debug_log(f"[{self.name}] Embedding task {result.task_id} failed: {result.error}")

        if failures:
            warning(f"[{self.name}] {failures}/{len(texts)} texts could not be embedded")

        return vectors

    def get_config(self) -> dict[str, Any]:
        """Return provider configuration for logging."""
        return {
            "name": self.name,
            "dimensions": self.dimensions,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, dimensions={self.dimensions})"
