from .media import (
    Modality, AudioProcessingOptions, PathRef, InlineRef, BufferRef, MediaReference, MediaInput
)
from .embedding import Embedding, EmbeddingMetadata
from .capabilities import Resolution, VisionCapabilities, AudioCapabilities
from .history import (
    HistoryRole, MediaAttachment, SystemItem, UserItem, AssistantItem, HistoryItem, UserTurn
)
from .generation import SamplingConfig, EvaluationResult

__all__ = [
    "Modality", "AudioProcessingOptions", "PathRef", "InlineRef", "BufferRef", "MediaReference", "MediaInput",
    "Embedding", "EmbeddingMetadata",
    "Resolution", "VisionCapabilities", "AudioCapabilities",
    "HistoryRole", "MediaAttachment", "SystemItem", "UserItem", "AssistantItem", "HistoryItem", "UserTurn",
    "SamplingConfig", "EvaluationResult",
]
