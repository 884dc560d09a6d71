from typing import Dict, Optional
import structlog

from multimodal.domain.cache import EmbeddingCache, MediaPipeline, TempFileRegistry
from multimodal.domain.context.multimodal_context import MultimodalContext
from multimodal.domain.engine.base import MediaProcessor, TextEngine
from multimodal.domain.errors import UnsupportedModalityError, UseAfterDisposeError
from multimodal.domain.models.capabilities import AudioCapabilities, VisionCapabilities
from multimodal.domain.models.embedding import Embedding
from multimodal.domain.models.media import AudioProcessingOptions, MediaReference, Modality
from multimodal.infrastructure.config.settings import MultimodalSettings

logger = structlog.get_logger(__name__)


class MultimodalModel:
    """Text model extended with image and audio processing.

    Owns one embedding cache per modality, the temporary files written for
    inline and buffer media, and every context created from it. Disposal tears
    all of these down in that order.
    """

    def __init__(
        self,
        processor: MediaProcessor,
        text_engine: TextEngine,
        settings: Optional[MultimodalSettings] = None
    ):
        self.settings = settings or MultimodalSettings()
        self.processor = processor
        self.text_engine = text_engine
        self.temp_files = TempFileRegistry(self.settings.temp_dir)

        pipeline = MediaPipeline(processor, self.temp_files)
        self.image_cache = EmbeddingCache(Modality.IMAGE, self.settings.max_image_cache, pipeline)
        self.audio_cache = EmbeddingCache(Modality.AUDIO, self.settings.max_audio_cache, pipeline)

        self._contexts: Dict[str, MultimodalContext] = {}
        self._disposed = False

        logger.info(
            "Multimodal model ready",
            encoder=processor.model_tag,
            vision=self.supports(Modality.IMAGE),
            audio=self.supports(Modality.AUDIO)
        )

    async def __aenter__(self) -> "MultimodalModel":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise UseAfterDisposeError("MultimodalModel")

    # Capabilities

    def vision_capabilities(self) -> VisionCapabilities:
        self._ensure_not_disposed()
        caps = self.processor.vision_capabilities()
        if not self.settings.enable_vision:
            caps = caps.model_copy(update={"supported": False})
        return caps

    def audio_capabilities(self) -> AudioCapabilities:
        self._ensure_not_disposed()
        caps = self.processor.audio_capabilities()
        if not self.settings.enable_audio:
            caps = caps.model_copy(update={"supported": False})
        return caps

    def supports(self, modality: Modality) -> bool:
        """Whether modality can be processed, check before submitting media"""
        if Modality(modality) == Modality.IMAGE:
            return self.vision_capabilities().supported
        return self.audio_capabilities().supported

    def _require(self, modality: Modality) -> None:
        if not self.supports(modality):
            reason = "disabled in settings" if not self._enabled(modality) else "not supported by the encoder"
            raise UnsupportedModalityError(modality.value, reason)

    def _enabled(self, modality: Modality) -> bool:
        if modality == Modality.IMAGE:
            return self.settings.enable_vision
        return self.settings.enable_audio

    # Processing

    async def process_image(self, ref: MediaReference) -> Embedding:
        """Return the embedding for an image, computing it on a cache miss"""

        self._ensure_not_disposed()
        self._require(Modality.IMAGE)
        return await self.image_cache.get_or_compute(ref)

    async def process_audio(
        self,
        ref: MediaReference,
        generate_transcript: Optional[bool] = None,
        language: Optional[str] = None
    ) -> Embedding:
        """Return the embedding for an audio item, optionally with a transcript.

        Call arguments override the options carried by the reference.
        """

        self._ensure_not_disposed()
        self._require(Modality.AUDIO)

        options = (ref.options or AudioProcessingOptions()).merged_with(
            generate_transcript=generate_transcript,
            language=language
        )
        return await self.audio_cache.get_or_compute(ref, options)

    def cache_for(self, modality: Modality) -> EmbeddingCache:
        return self.image_cache if Modality(modality) == Modality.IMAGE else self.audio_cache

    def clear_image_cache(self) -> None:
        self._ensure_not_disposed()
        self.image_cache.clear()

    def clear_audio_cache(self) -> None:
        self._ensure_not_disposed()
        self.audio_cache.clear()

    @property
    def cached_image_count(self) -> int:
        return self.image_cache.size

    @property
    def cached_audio_count(self) -> int:
        return self.audio_cache.size

    # Contexts

    def create_context(
        self,
        max_images_in_context: Optional[int] = None,
        max_audio_in_context: Optional[int] = None
    ) -> MultimodalContext:
        """Create a generation context owned by this model"""

        self._ensure_not_disposed()
        if max_images_in_context is None:
            max_images_in_context = self.settings.max_images_in_context
        if max_audio_in_context is None:
            max_audio_in_context = self.settings.max_audio_in_context

        context = MultimodalContext(
            self,
            max_images_in_context=max_images_in_context,
            max_audio_in_context=max_audio_in_context,
        )
        self._contexts[context.context_id] = context
        return context

    @property
    def contexts(self) -> Dict[str, MultimodalContext]:
        return dict(self._contexts)

    def _release_context(self, context_id: str) -> None:
        self._contexts.pop(context_id, None)

    async def dispose(self) -> None:
        """Dispose contexts, caches and temporary files"""

        if self._disposed:
            return
        self._disposed = True

        for context in list(self._contexts.values()):
            await context.dispose()
        self._contexts.clear()

        await self.image_cache.dispose()
        await self.audio_cache.dispose()
        removed = self.temp_files.cleanup()

        logger.info("Multimodal model disposed", temp_files_removed=removed)
