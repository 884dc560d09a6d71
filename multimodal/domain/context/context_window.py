from typing import Deque, Dict, Optional, Tuple
from collections import deque

from multimodal.domain.errors import ensure_positive
from multimodal.domain.models.embedding import Embedding
from multimodal.domain.models.media import Modality
from multimodal.infrastructure.observability.logging import multimodal_logger


class ActiveWindow:
    """Bounded FIFO of embeddings for one modality, in admission order"""

    def __init__(self, modality: Modality, max_count: int):
        self.modality = Modality(modality)
        self.max_count = ensure_positive(f"max_{self.modality.value}_in_context", max_count)
        self._items: Deque[Embedding] = deque()

    def admit(self, embedding: Embedding) -> Optional[Embedding]:
        """Append embedding, returning the evicted entry if the window was full"""

        evicted = None
        if len(self._items) >= self.max_count:
            evicted = self._items.popleft()
            multimodal_logger.log_window_event(
                "evict", self.modality.value, evicted.owner_id, len(self._items)
            )

        self._items.append(embedding)
        multimodal_logger.log_window_event("admit", self.modality.value, embedding.owner_id, len(self._items))
        return evicted

    def items(self) -> Tuple[Embedding, ...]:
        return tuple(self._items)

    def contains(self, embedding: Embedding) -> bool:
        return any(item is embedding for item in self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class ContextWindowManager:
    """Holds the per-modality windows of embeddings live for the next generation call.

    Windows reference embeddings owned by the model cache; clearing or evicting
    here never touches the cache. Re-admitting an embedding appends a second
    reference, use ``contains`` first for idempotent reuse.
    """

    def __init__(self, max_images: int = 4, max_audio: int = 2):
        self.windows: Dict[Modality, ActiveWindow] = {
            Modality.IMAGE: ActiveWindow(Modality.IMAGE, max_images),
            Modality.AUDIO: ActiveWindow(Modality.AUDIO, max_audio),
        }

    def admit(self, embedding: Embedding) -> None:
        self.windows[embedding.modality].admit(embedding)

    def active_embeddings(self, modality: Modality) -> Tuple[Embedding, ...]:
        return self.windows[Modality(modality)].items()

    def contains(self, embedding: Embedding) -> bool:
        return self.windows[embedding.modality].contains(embedding)

    def max_count(self, modality: Modality) -> int:
        return self.windows[Modality(modality)].max_count

    def clear(self) -> None:
        for modality, window in self.windows.items():
            window.clear()
            multimodal_logger.log_window_event("clear", modality.value, window_size=0)
