from typing import Dict, Iterator, List, Tuple, Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel, Field, field_validator

from multimodal.domain.models.history import (
    AssistantItem, HistoryItem, HistoryRole, MediaAttachment, SystemItem, UserItem
)

CONTENT_PLACEHOLDER = "{content}"


class PromptTemplate(BaseModel):
    """Role templates and modality markers used to linearize a transcript"""
    system: str = Field("System: {content}")
    user: str = Field("User: {content}")
    assistant: str = Field("Assistant: {content}")
    image_marker: str = Field("<image>")
    audio_marker: str = Field("<audio>")
    separator: str = Field("\n\n", description="Placed between rendered entries")

    @field_validator("system", "user", "assistant")
    @classmethod
    def _require_placeholder(cls, value: str) -> str:
        if CONTENT_PLACEHOLDER not in value:
            raise ValueError(f"role template must contain {CONTENT_PLACEHOLDER}")
        return value

    def template_for(self, role: HistoryRole) -> str:
        return getattr(self, HistoryRole(role).value)

    def render_audio(self, attachment: MediaAttachment) -> str:
        if attachment.transcript:
            return f"{self.audio_marker} [Transcript: {attachment.transcript}]"
        return self.audio_marker

    def render_content(self, item: HistoryItem) -> str:
        """Audio markers, then one image marker per image, then the text"""

        parts: List[str] = []
        if isinstance(item, UserItem):
            parts.extend(self.render_audio(attachment) for attachment in item.audio)
            parts.extend(self.image_marker for _ in item.images)
        if item.text:
            parts.append(item.text)
        return " ".join(parts)

    def render_item(self, item: HistoryItem) -> str:
        # str.replace keeps braces in user text intact
        return self.template_for(item.type).replace(CONTENT_PLACEHOLDER, self.render_content(item))

    def generation_cue(self) -> str:
        return self.assistant.replace(CONTENT_PLACEHOLDER, "")

    def render(self, items: List[HistoryItem]) -> str:
        parts = [self.render_item(item) for item in items]
        parts.append(self.generation_cue())
        return self.separator.join(parts)


class Transcript:
    """Ordered conversation history of a chat session.

    Append-only apart from ``clear``, which keeps system entries in their
    original order.
    """

    def __init__(self):
        self._items: List[HistoryItem] = []

    def append(self, item: HistoryItem) -> None:
        self._items.append(item)

    @property
    def items(self) -> Tuple[HistoryItem, ...]:
        return tuple(self._items)

    def clear(self) -> int:
        """Drop every non-system entry and return how many were removed"""

        kept = [item for item in self._items if isinstance(item, SystemItem)]
        removed = len(self._items) - len(kept)
        self._items = kept
        return removed

    def reset(self) -> None:
        self._items = []

    def render(self, template: PromptTemplate) -> str:
        return template.render(self._items)

    def to_messages(self, template: PromptTemplate) -> List[BaseMessage]:
        """Export as langchain-core chat messages.

        User content carries the rendered markers; attachment details travel
        in ``additional_kwargs``.
        """

        messages: List[BaseMessage] = []
        for item in self._items:
            if isinstance(item, SystemItem):
                messages.append(SystemMessage(content=item.text))
            elif isinstance(item, AssistantItem):
                messages.append(AIMessage(content=item.text))
            else:
                messages.append(HumanMessage(
                    content=template.render_content(item),
                    additional_kwargs={
                        "images": [_describe(a) for a in item.images],
                        "audio": [_describe(a) for a in item.audio],
                    }
                ))
        return messages

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[HistoryItem]:
        return iter(list(self._items))


def _describe(attachment: MediaAttachment) -> Dict[str, Any]:
    info: Dict[str, Any] = {}
    if attachment.ref is not None:
        info["kind"] = attachment.ref.kind
        info["id"] = attachment.ref.id
        info["description"] = attachment.ref.description
    if attachment.embedding is not None:
        info["owner_id"] = attachment.embedding.owner_id
        info["dimensions"] = attachment.embedding.dimensions
        if attachment.embedding.transcript is not None:
            info["transcript"] = attachment.embedding.transcript
    return info
