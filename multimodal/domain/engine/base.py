from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence
from pathlib import Path
import asyncio

from pydantic import BaseModel, ConfigDict, Field

from multimodal.domain.errors import EncoderCapabilityError
from multimodal.domain.models.capabilities import AudioCapabilities, VisionCapabilities
from multimodal.domain.models.generation import SamplingConfig
from multimodal.domain.models.media import AudioProcessingOptions, Modality


class DecodedMedia(BaseModel):
    """Decoded pixels or samples plus their geometry"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    modality: Modality
    data: Any = Field(None, description="Pixel or sample array, opaque to this package")
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None


class TranscriptionResult(BaseModel):
    text: str
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    language: Optional[str] = None


class MediaProcessor(ABC):
    """Base class for the external media processing engine.

    Implementations decode raw bytes, run the neural encoder and optionally
    transcribe speech. Decoding problems raise MediaFormatError, a missing
    modality in the loaded encoder raises EncoderCapabilityError.
    """

    # When True, inline and buffer payloads are written to temporary files
    # and handed to decode_file instead of decode.
    requires_file_input: bool = False

    @property
    def model_tag(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def decode(
        self,
        raw: bytes,
        mime_type: str,
        modality: Modality,
        options: Optional[AudioProcessingOptions] = None
    ) -> DecodedMedia:
        """Decode raw bytes into pixels or samples"""
        pass

    @abstractmethod
    async def encode(self, decoded: DecodedMedia) -> Sequence[float]:
        """Turn decoded media into an embedding vector"""
        pass

    async def transcribe(self, decoded: DecodedMedia, language: Optional[str] = None) -> TranscriptionResult:
        """Speech-to-text for decoded audio"""
        raise EncoderCapabilityError("speech-to-text is not available")

    async def decode_file(
        self,
        path: str,
        mime_type: str,
        modality: Modality,
        options: Optional[AudioProcessingOptions] = None
    ) -> DecodedMedia:
        """Decode media stored at path"""
        raw = await asyncio.to_thread(Path(path).read_bytes)
        return await self.decode(raw, mime_type, modality, options)

    def vision_capabilities(self) -> VisionCapabilities:
        return VisionCapabilities(supported=True)

    def audio_capabilities(self) -> AudioCapabilities:
        return AudioCapabilities(supported=True, supports_speech_to_text=self.overrides_transcribe)

    @property
    def overrides_transcribe(self) -> bool:
        """Whether a subclass provides its own speech-to-text"""
        return type(self).transcribe is not MediaProcessor.transcribe


class TextEngine(ABC):
    """Base class for the external text generation engine"""

    @abstractmethod
    def tokenize(self, text: str) -> List[int]:
        pass

    @abstractmethod
    def detokenize(self, tokens: Sequence[int]) -> str:
        pass

    @abstractmethod
    async def generate(
        self,
        tokens: Sequence[int],
        sampling: SamplingConfig,
        cancel_event: Optional[asyncio.Event] = None
    ) -> List[int]:
        """Generate a continuation of tokens.

        Must stop early and return what was produced so far once
        cancel_event is set.
        """
        pass
