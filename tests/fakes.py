"""In-process stand-ins for the media processor and text engine."""
import asyncio
import hashlib
from typing import Dict, Iterable, List, Optional, Sequence

from multimodal.domain.engine.base import DecodedMedia, MediaProcessor, TextEngine, TranscriptionResult
from multimodal.domain.errors import EncoderCapabilityError, MediaFormatError
from multimodal.domain.models.capabilities import AudioCapabilities, VisionCapabilities
from multimodal.domain.models.generation import SamplingConfig
from multimodal.domain.models.media import AudioProcessingOptions, Modality


class FakeMediaProcessor(MediaProcessor):
    """Hash-based encoder that counts its calls"""

    def __init__(
        self,
        dimensions: int = 8,
        delay: float = 0.0,
        delays: Optional[Dict[bytes, float]] = None,
        fail_payloads: Iterable[bytes] = (),
        transcript: str = "hello",
        confidence: float = 0.9,
        transcribe_error: Optional[Exception] = None,
        vision: bool = True,
        audio: bool = True,
        encoder_modalities: Iterable[Modality] = (Modality.IMAGE, Modality.AUDIO),
        requires_file_input: bool = False,
    ):
        self.dimensions = dimensions
        self.delay = delay
        self.delays = delays or {}
        self.fail_payloads = set(fail_payloads)
        self.transcript = transcript
        self.confidence = confidence
        self.transcribe_error = transcribe_error
        self.vision = vision
        self.audio = audio
        self.encoder_modalities = set(encoder_modalities)
        self.requires_file_input = requires_file_input
        self.decode_calls = 0
        self.encode_calls = 0
        self.transcribe_calls = 0
        self.decoded_paths: List[str] = []

    async def decode(self, raw, mime_type, modality, options: Optional[AudioProcessingOptions] = None):
        self.decode_calls += 1
        delay = self.delays.get(raw, self.delay)
        if delay:
            await asyncio.sleep(delay)
        if raw in self.fail_payloads:
            raise MediaFormatError(f"cannot decode {mime_type}")

        if modality == Modality.IMAGE:
            return DecodedMedia(modality=modality, data=raw, mime_type=mime_type, width=len(raw), height=1)
        return DecodedMedia(
            modality=modality,
            data=raw,
            mime_type=mime_type,
            duration=1.5,
            sample_rate=(options.sample_rate if options and options.sample_rate else 16000),
            channels=(options.channels if options and options.channels else 1),
        )

    async def decode_file(self, path, mime_type, modality, options=None):
        self.decoded_paths.append(path)
        return await super().decode_file(path, mime_type, modality, options)

    async def encode(self, decoded: DecodedMedia) -> Sequence[float]:
        self.encode_calls += 1
        if decoded.modality not in self.encoder_modalities:
            raise EncoderCapabilityError(f"no {decoded.modality.value} projector loaded")
        digest = hashlib.sha256(decoded.data).digest()
        return [byte / 255 for byte in digest[:self.dimensions]]

    async def transcribe(self, decoded: DecodedMedia, language: Optional[str] = None) -> TranscriptionResult:
        self.transcribe_calls += 1
        if self.transcribe_error is not None:
            raise self.transcribe_error
        return TranscriptionResult(text=self.transcript, confidence=self.confidence, language=language)

    def vision_capabilities(self) -> VisionCapabilities:
        return VisionCapabilities(supported=self.vision)

    def audio_capabilities(self) -> AudioCapabilities:
        return super().audio_capabilities().model_copy(update={"supported": self.audio})


class NoSpeechProcessor(FakeMediaProcessor):
    """Encodes audio but keeps the base class's missing speech-to-text"""

    transcribe = MediaProcessor.transcribe


class FakeTextEngine(TextEngine):
    """Character-level tokenizer that replies with a fixed text"""

    def __init__(self, reply: str = "Hi there", trigger_cancel_at: Optional[int] = None):
        self.reply = reply
        self.trigger_cancel_at = trigger_cancel_at
        self.prompts: List[str] = []
        self.samplings: List[SamplingConfig] = []

    def tokenize(self, text: str) -> List[int]:
        return [ord(ch) for ch in text]

    def detokenize(self, tokens: Sequence[int]) -> str:
        return "".join(chr(token) for token in tokens)

    async def generate(self, tokens, sampling, cancel_event: Optional[asyncio.Event] = None) -> List[int]:
        self.prompts.append(self.detokenize(tokens))
        self.samplings.append(sampling)

        output: List[int] = []
        for token in self.tokenize(self.reply)[:sampling.max_tokens]:
            if cancel_event is not None and cancel_event.is_set():
                break
            output.append(token)
            if self.trigger_cancel_at is not None and len(output) == self.trigger_cancel_at and cancel_event:
                cancel_event.set()
            await asyncio.sleep(0)
        return output
