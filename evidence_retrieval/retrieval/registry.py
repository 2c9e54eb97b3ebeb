"""
Corpus Registry.

Maps corpus scope names (usually session ids) to evidence store snapshots,
plus one global store shared across sessions. Registering a new snapshot
under an existing scope replaces the old one; queries already running keep
the snapshot they started with.
"""

import threading
from dataclasses import dataclass

from evidence_retrieval.logging_config import debug_log
from evidence_retrieval.store import EvidenceStore

GLOBAL_SCOPE = "global"


@dataclass
class CorpusInfo:
    """Information about a single registered corpus."""
    scope: str
    store_name: str
    chunk_count: int
    is_global: bool


class CorpusRegistry:
    """
    Thread-safe scope -> store mapping.

    Example:
        registry = CorpusRegistry()
        registry.register("session-42", MemoryEvidenceStore(chunks))
        registry.set_global_store(MemoryEvidenceStore(promoted_chunks))
        store = registry.get_store("session-42")
    """

    def __init__(self):
        self._stores: dict[str, EvidenceStore] = {}
        self._global_store: EvidenceStore | None = None
        self._lock = threading.Lock()

    def register(self, scope: str, store: EvidenceStore) -> None:
        """
        Register (or replace) the snapshot for a scope.

        Raises:
            ValueError: If scope is empty or reserved for the global store
        """
        if not scope:
            raise ValueError("Corpus scope must be a non-empty string")
        if scope == GLOBAL_SCOPE:
            raise ValueError(f"'{GLOBAL_SCOPE}' is reserved; use set_global_store()")
        with self._lock:
            replaced = scope in self._stores
            self._stores[scope] = store
        debug_log(f"[CorpusRegistry] {'Replaced' if replaced else 'Registered'} '{scope}' -> {store!r}")

    def unregister(self, scope: str) -> bool:
        """Remove a scope. Returns True if it was registered."""
        with self._lock:
            removed = self._stores.pop(scope, None) is not None
        if removed:
            debug_log(f"[CorpusRegistry] Unregistered '{scope}'")
        return removed

    def get_store(self, scope: str) -> EvidenceStore | None:
        """Snapshot for a scope (GLOBAL_SCOPE returns the global store), or None."""
        with self._lock:
            if scope == GLOBAL_SCOPE:
                return self._global_store
            return self._stores.get(scope)

    def set_global_store(self, store: EvidenceStore | None) -> None:
        """Set (or clear) the cross-session store."""
        with self._lock:
            self._global_store = store
        debug_log(f"[CorpusRegistry] Global store set to {store!r}")

    @property
    def global_store(self) -> EvidenceStore | None:
        with self._lock:
            return self._global_store

    def list_scopes(self) -> list[str]:
        """Registered session scopes, sorted."""
        with self._lock:
            return sorted(self._stores)

    def list_corpora(self) -> list[CorpusInfo]:
        """Information about every registered corpus, global last."""
        with self._lock:
            entries = sorted(self._stores.items())
            global_store = self._global_store

        corpora = [
            CorpusInfo(scope=scope, store_name=store.name,
                       chunk_count=store.chunk_count(), is_global=False)
            for scope, store in entries
        ]
        if global_store is not None:
            corpora.append(CorpusInfo(scope=GLOBAL_SCOPE, store_name=global_store.name,
                                      chunk_count=global_store.chunk_count(), is_global=True))
        return corpora
