"""
HuggingFace Embedding Provider.

Wraps a sentence-transformers model through langchain_huggingface. The model
is loaded on first use. Any failure (missing package, download error, model
crash) makes the provider report itself unavailable by returning None; it
retries after EMBEDDING_RETRY_SECONDS so a transient outage does not disable
semantic search for the rest of the process.
"""

import threading
import time
from typing import TYPE_CHECKING, Any

import numpy as np

from evidence_retrieval.config import (
    DEBUG_MODE,
    DEFAULT_EMBEDDING_MODEL,
    EMBEDDING_RETRY_SECONDS,
)
from evidence_retrieval.embeddings.base import EmbeddingProvider
from evidence_retrieval.logging_config import debug_log, warning

if TYPE_CHECKING:
    from langchain_huggingface import HuggingFaceEmbeddings


class HuggingFaceEmbeddingProvider(EmbeddingProvider):
    """
    Sentence-transformer embeddings via langchain_huggingface.

    Example:
        provider = HuggingFaceEmbeddingProvider()
        vector = provider.embed("Who maintains the parser?")
        if vector is None:
            ...  # model unavailable, semantic lane will be skipped
    """

    name: str = "HuggingFaceEmbeddings"

    def __init__(
        self,
        model_name: str = DEFAULT_EMBEDDING_MODEL,
        embeddings: "HuggingFaceEmbeddings | None" = None,
        retry_seconds: float = EMBEDDING_RETRY_SECONDS,
        device: str = "cpu",
    ):
        """
        Initialize the provider.

        Args:
            model_name: sentence-transformers model to load on first use
            embeddings: Pre-loaded embeddings object (skips lazy loading)
            retry_seconds: Wait after a failure before trying the model again
            device: Torch device for the model
        """
        self.model_name = model_name
        self.retry_seconds = retry_seconds
        self.device = device
        self._embeddings = embeddings
        self._unavailable_since: float | None = None
        self._load_lock = threading.Lock()

    def _ensure_embeddings(self) -> "HuggingFaceEmbeddings":
        """Load the embeddings model if it is not loaded yet."""
        with self._load_lock:
            if self._embeddings is None:
                from langchain_huggingface import HuggingFaceEmbeddings

                if DEBUG_MODE:
                    debug_log(f"[HuggingFace] Loading embeddings model: {self.model_name}")

                self._embeddings = HuggingFaceEmbeddings(
                    model_name=self.model_name,
                    model_kwargs={"device": self.device},
                    encode_kwargs={"normalize_embeddings": True},
                )
            return self._embeddings

    @property
    def is_available(self) -> bool:
        """False while inside the back-off window after a failure."""
        if self._unavailable_since is None:
            return True
        return (time.monotonic() - self._unavailable_since) >= self.retry_seconds

    def embed(self, text: str) -> np.ndarray | None:
        """Embed text; None for blank text or while the model is unavailable."""
        if not text or not text.strip():
            return None
        if not self.is_available:
            return None

        try:
            embeddings = self._ensure_embeddings()
            vector = np.asarray(embeddings.embed_query(text), dtype=np.float32)
        except Exception as e:
            warning(f"[HuggingFace] Embedding failed, retrying in {self.retry_seconds:.0f}s: {e}")
            self._unavailable_since = time.monotonic()
            return None

        self._unavailable_since = None
        self.dimensions = int(vector.shape[0])
        return vector

    def get_config(self) -> dict[str, Any]:
        """Return provider configuration."""
        config = super().get_config()
        config.update({
            "model_name": self.model_name,
            "device": self.device,
            "available": self.is_available,
        })
        return config
