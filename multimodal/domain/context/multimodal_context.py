from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple, Union
import asyncio
import uuid
import weakref

import structlog

from multimodal.domain.errors import UseAfterDisposeError
from multimodal.domain.models.embedding import Embedding
from multimodal.domain.models.generation import EvaluationResult, SamplingConfig
from multimodal.domain.models.media import MediaInput, MediaReference, Modality
from .context_window import ContextWindowManager

if TYPE_CHECKING:
    from multimodal.domain.model.multimodal_model import MultimodalModel

logger = structlog.get_logger(__name__)

DEFAULT_IMAGE_MARKER = "<image>"
DEFAULT_AUDIO_MARKER = "<audio>"

EvaluationItem = Union[str, Sequence[int], MediaInput]


class MultimodalContext:
    """Generation context holding the embeddings live for the next call.

    The context references its model through a weak handle; the model owns the
    context and disposes it on teardown. Embeddings in the windows belong to
    the model cache and are only referenced here.
    """

    def __init__(
        self,
        model: "MultimodalModel",
        max_images_in_context: int = 4,
        max_audio_in_context: int = 2
    ):
        self.context_id = uuid.uuid4().hex
        self._model_ref = weakref.ref(model)
        self.windows = ContextWindowManager(max_images_in_context, max_audio_in_context)
        self._disposed = False

    async def __aenter__(self) -> "MultimodalContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()

    @property
    def is_disposed(self) -> bool:
        model = self._model_ref()
        return self._disposed or model is None or model.is_disposed

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise UseAfterDisposeError("MultimodalContext")

    @property
    def model(self) -> "MultimodalModel":
        self._ensure_not_disposed()
        model = self._model_ref()
        if model is None or model.is_disposed:
            raise UseAfterDisposeError("MultimodalModel")
        return model

    # Resolution and admission

    async def resolve_image(self, ref: MediaReference) -> Embedding:
        """Resolve an image through the model cache without admitting it"""
        return await self.model.process_image(ref)

    async def resolve_audio(
        self,
        ref: MediaReference,
        generate_transcript: Optional[bool] = None,
        language: Optional[str] = None
    ) -> Embedding:
        """Resolve audio through the model cache without admitting it"""
        return await self.model.process_audio(ref, generate_transcript=generate_transcript, language=language)

    def admit(self, embedding: Embedding) -> None:
        """Append embedding to its modality window, evicting the oldest when full"""
        self._ensure_not_disposed()
        self.windows.admit(embedding)

    async def add_image(self, ref: MediaReference) -> Embedding:
        embedding = await self.resolve_image(ref)
        self.admit(embedding)
        return embedding

    async def add_audio(
        self,
        ref: MediaReference,
        generate_transcript: Optional[bool] = None,
        language: Optional[str] = None
    ) -> Embedding:
        embedding = await self.resolve_audio(ref, generate_transcript=generate_transcript, language=language)
        self.admit(embedding)
        return embedding

    @property
    def active_images(self) -> Tuple[Embedding, ...]:
        return self.windows.active_embeddings(Modality.IMAGE)

    @property
    def active_audio(self) -> Tuple[Embedding, ...]:
        return self.windows.active_embeddings(Modality.AUDIO)

    def clear_multimodal_content(self) -> None:
        """Empty both windows, leaving the model cache untouched"""
        self._ensure_not_disposed()
        self.windows.clear()

    # Text engine delegation

    def tokenize(self, text: str) -> List[int]:
        return list(self.model.text_engine.tokenize(text))

    def detokenize(self, tokens: Sequence[int]) -> str:
        return self.model.text_engine.detokenize(tokens)

    async def evaluate(
        self,
        items: Sequence[EvaluationItem],
        image_marker: str = DEFAULT_IMAGE_MARKER,
        audio_marker: str = DEFAULT_AUDIO_MARKER
    ) -> EvaluationResult:
        """Turn a mixed sequence of text, tokens and tagged media into tokens.

        Media items are replaced by the tokens of their modality marker. Every
        item is resolved before any is admitted, so a failure leaves the
        windows as they were.
        """

        result = EvaluationResult()
        resolved: List[Embedding] = []
        for item in items:
            if isinstance(item, str):
                result.tokens.extend(self.tokenize(item))
            elif isinstance(item, MediaInput):
                if item.modality == Modality.IMAGE:
                    resolved.append(await self.resolve_image(item.ref))
                    result.tokens.extend(self.tokenize(image_marker))
                    result.images_admitted += 1
                else:
                    resolved.append(await self.resolve_audio(item.ref))
                    result.tokens.extend(self.tokenize(audio_marker))
                    result.audio_admitted += 1
            else:
                result.tokens.extend(int(token) for token in item)

        for embedding in resolved:
            self.admit(embedding)
        return result

    async def generate(
        self,
        prompt: Union[str, Sequence[int]],
        sampling: Optional[SamplingConfig] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> List[int]:
        """Generate a continuation of prompt with the model's text engine"""

        model = self.model
        tokens = self.tokenize(prompt) if isinstance(prompt, str) else list(prompt)

        logger.debug(
            "Generating",
            context_id=self.context_id,
            prompt_tokens=len(tokens),
            active_images=len(self.active_images),
            active_audio=len(self.active_audio)
        )
        return list(await model.text_engine.generate(tokens, sampling or SamplingConfig(), cancel_event))

    async def dispose(self) -> None:
        """Clear the windows and release this context from its model.

        The shared model cache is never touched.
        """

        if self._disposed:
            return
        self._disposed = True
        self.windows.clear()

        model = self._model_ref()
        if model is not None:
            model._release_context(self.context_id)

        logger.debug("Context disposed", context_id=self.context_id)
