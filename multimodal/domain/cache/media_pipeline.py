from typing import Awaitable, Optional, TypeVar
import mimetypes
import os
import time

import structlog

from multimodal.domain.engine.base import DecodedMedia, MediaProcessor
from multimodal.domain.errors import EncoderCapabilityError, MediaProcessingError, UnsupportedModalityError
from multimodal.domain.models.embedding import Embedding, EmbeddingMetadata
from multimodal.domain.models.media import AudioProcessingOptions, MediaReference, Modality, PathRef
from .cache_key import normalize_mime_type, payload_bytes
from .temp_files import TempFileRegistry

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class MediaPipeline:
    """Runs read → decode → encode → transcribe for one media item"""

    def __init__(self, processor: MediaProcessor, temp_files: TempFileRegistry):
        self.processor = processor
        self.temp_files = temp_files

    async def process(
        self,
        modality: Modality,
        ref: MediaReference,
        options: Optional[AudioProcessingOptions],
        cache_key: str
    ) -> Embedding:
        """Compute a fresh embedding for ref"""

        started = time.perf_counter()

        decoded = await self._stage("decode", modality, cache_key, self._decode(modality, ref, options))
        vector = await self._stage("encode", modality, cache_key, self.processor.encode(decoded))

        transcript = None
        confidence = None
        language = options.language if options else None
        if self._wants_transcript(modality, options):
            result = await self._stage(
                "transcribe", modality, cache_key, self.processor.transcribe(decoded, language)
            )
            transcript = result.text
            confidence = result.confidence
            language = result.language or language

        metadata = EmbeddingMetadata(
            model=self.processor.model_tag,
            original_width=decoded.width,
            original_height=decoded.height,
            duration=decoded.duration,
            sample_rate=decoded.sample_rate,
            channels=decoded.channels,
            language=language if modality == Modality.AUDIO else None,
        )

        try:
            embedding = Embedding.from_vector(
                vector,
                owner_id=ref.id or cache_key,
                modality=modality,
                transcript=transcript,
                confidence=confidence,
                metadata=metadata,
            )
        except ValueError as e:
            raise MediaProcessingError("encode", e, cache_key) from e

        logger.debug(
            "Computed embedding",
            cache_key=cache_key,
            modality=modality.value,
            dimensions=embedding.dimensions,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return embedding

    def _wants_transcript(self, modality: Modality, options: Optional[AudioProcessingOptions]) -> bool:
        if modality != Modality.AUDIO or options is None or not options.generate_transcript:
            return False
        if not self.processor.audio_capabilities().supports_speech_to_text:
            logger.debug("Skipping transcript, speech-to-text unavailable", encoder=self.processor.model_tag)
            return False
        return True

    async def _decode(
        self,
        modality: Modality,
        ref: MediaReference,
        options: Optional[AudioProcessingOptions]
    ) -> DecodedMedia:
        if isinstance(ref, PathRef):
            if not os.path.isfile(ref.path):
                raise MediaProcessingError("read", FileNotFoundError(f"No such media file: {ref.path}"))
            mime_type = mimetypes.guess_type(ref.path)[0] or "application/octet-stream"
            return await self.processor.decode_file(ref.path, mime_type, modality, options)

        payload = payload_bytes(ref)
        mime_type = normalize_mime_type(ref.mime_type)

        if self.processor.requires_file_input:
            path = await self.temp_files.create(payload, mime_type)
            try:
                return await self.processor.decode_file(path, mime_type, modality, options)
            finally:
                self.temp_files.release(path)

        return await self.processor.decode(payload, mime_type, modality, options)

    async def _stage(self, stage: str, modality: Modality, cache_key: str, awaitable: Awaitable[T]) -> T:
        """Await one processing stage, translating collaborator failures"""

        try:
            return await awaitable
        except MediaProcessingError as e:
            if e.cache_key is None:
                e.cache_key = cache_key
            raise
        except EncoderCapabilityError as e:
            # Only a missing encoder disables the modality; a transcriber failure is per item
            if stage == "transcribe":
                raise MediaProcessingError(stage, e, cache_key) from e
            raise UnsupportedModalityError(modality.value, str(e)) from e
        except Exception as e:
            raise MediaProcessingError(stage, e, cache_key) from e
