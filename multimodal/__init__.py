"""Image and audio inputs for a text-generation engine.

Embeddings are memoized per model, kept in bounded windows per context and
linearized into prompts per chat session.
"""
from multimodal.domain.errors import (
    MultimodalError, UseAfterDisposeError, UnsupportedModalityError, MediaProcessingError,
    CapacityMisconfigurationError, MediaFormatError, EncoderCapabilityError
)
from multimodal.domain.models import (
    Modality, AudioProcessingOptions, PathRef, InlineRef, BufferRef, MediaReference, MediaInput,
    Embedding, EmbeddingMetadata, Resolution, VisionCapabilities, AudioCapabilities,
    HistoryRole, MediaAttachment, SystemItem, UserItem, AssistantItem, HistoryItem, UserTurn,
    SamplingConfig, EvaluationResult
)
from multimodal.domain.engine import DecodedMedia, MediaProcessor, TextEngine, TranscriptionResult
from multimodal.domain.cache import EmbeddingCache, derive_cache_key
from multimodal.domain.context import ActiveWindow, ContextWindowManager, MultimodalContext
from multimodal.domain.model import MultimodalModel
from multimodal.domain.session import MultimodalChatSession, PromptTemplate, Transcript
from multimodal.infrastructure.config import MultimodalSettings
from multimodal.infrastructure.observability.logging import setup_logging

__version__ = "0.1.0"

__all__ = [
    "MultimodalError", "UseAfterDisposeError", "UnsupportedModalityError", "MediaProcessingError",
    "CapacityMisconfigurationError", "MediaFormatError", "EncoderCapabilityError",
    "Modality", "AudioProcessingOptions", "PathRef", "InlineRef", "BufferRef", "MediaReference", "MediaInput",
    "Embedding", "EmbeddingMetadata", "Resolution", "VisionCapabilities", "AudioCapabilities",
    "HistoryRole", "MediaAttachment", "SystemItem", "UserItem", "AssistantItem", "HistoryItem", "UserTurn",
    "SamplingConfig", "EvaluationResult",
    "DecodedMedia", "MediaProcessor", "TextEngine", "TranscriptionResult",
    "EmbeddingCache", "derive_cache_key",
    "ActiveWindow", "ContextWindowManager", "MultimodalContext",
    "MultimodalModel",
    "MultimodalChatSession", "PromptTemplate", "Transcript",
    "MultimodalSettings", "setup_logging",
]
