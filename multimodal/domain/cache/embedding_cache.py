from typing import Dict, List, Optional, Any
import asyncio
import time

import structlog

from multimodal.domain.errors import UseAfterDisposeError, ensure_positive
from multimodal.domain.models.embedding import Embedding
from multimodal.domain.models.media import AudioProcessingOptions, MediaReference, Modality
from multimodal.infrastructure.observability.logging import metrics, multimodal_logger
from .cache_key import derive_cache_key
from .media_pipeline import MediaPipeline

logger = structlog.get_logger(__name__)


class EmbeddingCache:
    """Per-modality embedding store with FIFO eviction and request coalescing.

    Entries are kept in insertion order and the oldest inserted entry is
    evicted first once ``max_capacity`` is reached, however often it is hit.
    Concurrent requests for the same key share a single pending computation.
    """

    def __init__(self, modality: Modality, max_capacity: int, pipeline: MediaPipeline):
        self.modality = Modality(modality)
        self.max_capacity = ensure_positive(f"max_{self.modality.value}_cache", max_capacity)
        self.pipeline = pipeline
        self.entries: Dict[str, Embedding] = {}
        self._pending: Dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0, "coalesced": 0}
        self._disposed = False

    def cache_key(self, ref: MediaReference, options: Optional[AudioProcessingOptions] = None) -> str:
        return derive_cache_key(self.modality, ref, options)

    async def get_or_compute(
        self,
        ref: MediaReference,
        options: Optional[AudioProcessingOptions] = None
    ) -> Embedding:
        """Return the cached embedding for ref, computing it at most once per key"""

        if self._disposed:
            raise UseAfterDisposeError("MultimodalModel")

        key = self.cache_key(ref, options)

        async with self._lock:
            cached = self.entries.get(key)
            if cached is not None:
                self._record("hits", key)
                return cached

            task = self._pending.get(key)
            if task is None:
                self._record("misses", key)
                task = asyncio.ensure_future(self._compute(key, ref, options))
                self._pending[key] = task
            else:
                self._record("coalesced", key)

        # A cancelled waiter must not cancel the computation other callers share
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # Computation cancelled by dispose() while this caller was not
            if self._disposed and task.cancelled() and not _caller_cancelled():
                raise UseAfterDisposeError("MultimodalModel") from None
            raise

    async def _compute(
        self,
        key: str,
        ref: MediaReference,
        options: Optional[AudioProcessingOptions]
    ) -> Embedding:
        started = time.perf_counter()
        try:
            embedding = await self.pipeline.process(self.modality, ref, options, key)

            async with self._lock:
                self._insert(key, embedding)

            metrics.record_latency(
                "embedding.compute",
                (time.perf_counter() - started) * 1000,
                tags={"modality": self.modality.value}
            )
            return embedding
        finally:
            if self._pending.get(key) is asyncio.current_task():
                del self._pending[key]

    def _insert(self, key: str, embedding: Embedding) -> None:
        # Caller holds self._lock
        self.entries.pop(key, None)

        while len(self.entries) >= self.max_capacity:
            oldest = next(iter(self.entries))
            del self.entries[oldest]
            self._record("evictions", oldest)

        self.entries[key] = embedding
        self._report_size()

    def _record(self, stat: str, key: str) -> None:
        self._stats[stat] += 1
        metrics.increment_counter(f"cache.{self.modality.value}.{stat}")
        multimodal_logger.log_cache_event(stat, self.modality.value, key, size=len(self.entries))

    def _report_size(self) -> None:
        metrics.set_gauge(
            f"cache.{self.modality.value}.size",
            len(self.entries),
            tags={"max_capacity": str(self.max_capacity)}
        )

    def get(self, key: str) -> Optional[Embedding]:
        """Peek at an entry without touching statistics"""
        return self.entries.get(key)

    def contains(self, key: str) -> bool:
        return key in self.entries

    def keys(self) -> List[str]:
        """Cache keys, oldest inserted first"""
        return list(self.entries)

    @property
    def size(self) -> int:
        return len(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def clear(self) -> int:
        """Drop every entry. Embeddings already admitted into windows stay valid."""

        count = len(self.entries)
        self.entries.clear()
        self._report_size()
        logger.info("Cleared embedding cache", modality=self.modality.value, removed=count)
        return count

    async def dispose(self) -> None:
        """Cancel in-flight computations and drop every entry.

        Callers still waiting on a cancelled computation get UseAfterDisposeError.
        """

        self._disposed = True
        pending = list(self._pending.values())
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self._pending.clear()
        self.entries.clear()
        self._report_size()

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""

        return {
            "modality": self.modality.value,
            "size": len(self.entries),
            "max_capacity": self.max_capacity,
            "in_flight": len(self._pending),
            **self._stats
        }


def _caller_cancelled() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0
