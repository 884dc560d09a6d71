from typing import List, Optional, Sequence, Tuple, Union
import asyncio
import uuid
import weakref

import structlog
from langchain_core.messages import BaseMessage

from multimodal.domain.context.multimodal_context import MultimodalContext
from multimodal.domain.errors import UseAfterDisposeError
from multimodal.domain.models.embedding import Embedding
from multimodal.domain.models.generation import SamplingConfig
from multimodal.domain.models.history import AssistantItem, HistoryItem, MediaAttachment, SystemItem, UserItem, UserTurn
from multimodal.domain.models.media import MediaReference, Modality
from multimodal.infrastructure.observability.logging import multimodal_logger
from .transcript import PromptTemplate, Transcript

logger = structlog.get_logger(__name__)


class MultimodalChatSession:
    """Chat session that attaches images and audio to user turns.

    Turns are serialized: each one resolves its media through the context
    (images first, then audio), admits the embeddings and only then records
    the entry. A failure while resolving any item leaves both the transcript
    and the context windows untouched.

    The session never disposes its context; it holds a weak handle to it.
    """

    def __init__(
        self,
        context: MultimodalContext,
        system_prompt: Optional[str] = None,
        prompt_template: Optional[PromptTemplate] = None,
        auto_process_images: bool = True,
        auto_process_audio: bool = True,
        generate_transcripts: bool = True,
        sampling: Optional[SamplingConfig] = None,
        session_id: Optional[str] = None
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self._context_ref = weakref.ref(context)
        self.template = prompt_template or PromptTemplate()
        self.auto_process_images = auto_process_images
        self.auto_process_audio = auto_process_audio
        self.generate_transcripts = generate_transcripts
        self.sampling = sampling or SamplingConfig()
        self.transcript = Transcript()
        self._turn_lock = asyncio.Lock()
        self._disposed = False

        if system_prompt:
            self.transcript.append(SystemItem(text=system_prompt))

    async def __aenter__(self) -> "MultimodalChatSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise UseAfterDisposeError("MultimodalChatSession")

    @property
    def context(self) -> MultimodalContext:
        self._ensure_not_disposed()
        context = self._context_ref()
        if context is None or context.is_disposed:
            raise UseAfterDisposeError("MultimodalContext")
        return context

    # Turns

    async def append_turn(self, message: Union[str, UserTurn]) -> str:
        """Resolve and record a user turn, returning its rendered fragment"""

        self._ensure_not_disposed()
        async with self._turn_lock:
            item = await self._record_user_turn(message)
        return self.template.render_item(item)

    async def prompt(
        self,
        message: Union[str, UserTurn],
        sampling: Optional[SamplingConfig] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> str:
        """Record a user turn, generate a reply and record it.

        Setting cancel_event stops generation early; the partial reply is
        recorded and returned. Media admitted for the turn stays admitted.
        """

        self._ensure_not_disposed()
        sampling = sampling or self.sampling

        async with self._turn_lock:
            await self._record_user_turn(message)
            context = self.context

            with structlog.contextvars.bound_contextvars(session_id=self.session_id):
                tokens = await context.generate(self.render(), sampling, cancel_event)
                text = self._postprocess(context.detokenize(tokens), sampling)

                self.transcript.append(AssistantItem(text=text))
                multimodal_logger.log_turn(self.session_id, "assistant")
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Generation cancelled", response_chars=len(text))

        return text

    def _postprocess(self, text: str, sampling: SamplingConfig) -> str:
        for stop in sampling.stop:
            if stop and stop in text:
                text = text[:text.index(stop)]
        if sampling.trim_whitespace_suffix:
            text = text.rstrip()
        return text

    async def _record_user_turn(self, message: Union[str, UserTurn]) -> UserItem:
        # Caller holds self._turn_lock
        turn = UserTurn(text=message) if isinstance(message, str) else message
        context = self.context

        with structlog.contextvars.bound_contextvars(session_id=self.session_id):
            try:
                images, image_order = await self._resolve_all(context, Modality.IMAGE, turn.images)
                audio, audio_order = await self._resolve_all(context, Modality.AUDIO, turn.audio)
            except Exception as e:
                multimodal_logger.log_turn(
                    self.session_id, "user", len(turn.images), len(turn.audio), success=False, error=str(e)
                )
                raise

            for embedding in [*image_order, *turn.image_embeddings, *audio_order, *turn.audio_embeddings]:
                context.admit(embedding)

            item = UserItem(
                text=turn.text,
                images=images + [MediaAttachment(embedding=e) for e in turn.image_embeddings],
                audio=audio + [MediaAttachment(embedding=e) for e in turn.audio_embeddings],
            )
            self.transcript.append(item)
            multimodal_logger.log_turn(self.session_id, "user", len(item.images), len(item.audio))

        return item

    async def _resolve_all(
        self,
        context: MultimodalContext,
        modality: Modality,
        refs: Sequence[MediaReference]
    ) -> Tuple[List[MediaAttachment], List[Embedding]]:
        """Resolve refs concurrently.

        Returns attachments in submission order and embeddings in completion
        order, which is the order they get admitted in.
        """

        if not refs:
            return [], []

        auto = self.auto_process_images if modality == Modality.IMAGE else self.auto_process_audio
        if not auto:
            return [MediaAttachment(ref=ref) for ref in refs], []

        completed: List[Embedding] = []

        async def resolve(ref: MediaReference) -> Embedding:
            if modality == Modality.IMAGE:
                embedding = await context.resolve_image(ref)
            else:
                embedding = await context.resolve_audio(
                    ref, generate_transcript=True if self.generate_transcripts else None
                )
            completed.append(embedding)
            return embedding

        tasks = [asyncio.ensure_future(resolve(ref)) for ref in refs]
        try:
            embeddings = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        attachments = [MediaAttachment(ref=ref, embedding=e) for ref, e in zip(refs, embeddings)]
        return attachments, completed

    async def add_image(self, ref: MediaReference) -> Embedding:
        """Admit an image into the context without recording a turn"""
        self._ensure_not_disposed()
        return await self.context.add_image(ref)

    async def add_audio(
        self,
        ref: MediaReference,
        generate_transcript: Optional[bool] = None,
        language: Optional[str] = None
    ) -> Embedding:
        """Admit audio into the context without recording a turn"""
        self._ensure_not_disposed()
        return await self.context.add_audio(ref, generate_transcript=generate_transcript, language=language)

    # History

    def render(self) -> str:
        """Linearize the transcript into a prompt ending in the generation cue"""
        self._ensure_not_disposed()
        return self.transcript.render(self.template)

    @property
    def history(self) -> Tuple[HistoryItem, ...]:
        return self.transcript.items

    def to_messages(self) -> List[BaseMessage]:
        self._ensure_not_disposed()
        return self.transcript.to_messages(self.template)

    def clear_history(self) -> None:
        """Keep only system entries and empty the context windows.

        Works after the context is gone; there are no windows left to clear then.
        """

        self._ensure_not_disposed()
        removed = self.transcript.clear()
        context = self._context_ref()
        if context is not None and not context.is_disposed:
            context.clear_multimodal_content()
        logger.info("Cleared session history", session_id=self.session_id, removed=removed)

    @property
    def active_images(self) -> Tuple[Embedding, ...]:
        return self.context.active_images

    @property
    def active_audio(self) -> Tuple[Embedding, ...]:
        return self.context.active_audio

    async def dispose(self) -> None:
        """Clear the transcript. The context is left alone since it may be shared."""

        if self._disposed:
            return
        self._disposed = True
        self.transcript.reset()
        logger.debug("Session disposed", session_id=self.session_id)
