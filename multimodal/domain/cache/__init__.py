from .cache_key import derive_cache_key, canonical_options, normalize_mime_type, payload_bytes
from .embedding_cache import EmbeddingCache
from .media_pipeline import MediaPipeline
from .temp_files import TempFileRegistry

__all__ = [
    "derive_cache_key", "canonical_options", "normalize_mime_type", "payload_bytes",
    "EmbeddingCache", "MediaPipeline", "TempFileRegistry",
]
