from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .embedding import Embedding
from .media import MediaReference


def _now() -> datetime:
    return datetime.now(timezone.utc)


class HistoryRole(str, Enum):
    """Role of a transcript entry"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class MediaAttachment(BaseModel):
    """A media reference attached to a user turn, with its embedding once resolved"""
    model_config = ConfigDict(frozen=True)

    ref: Optional[MediaReference] = None
    embedding: Optional[Embedding] = None

    @model_validator(mode="after")
    def _require_ref_or_embedding(self) -> "MediaAttachment":
        if self.ref is None and self.embedding is None:
            raise ValueError("an attachment needs a media reference or an embedding")
        return self

    @property
    def transcript(self) -> Optional[str]:
        return self.embedding.transcript if self.embedding else None


class SystemItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["system"] = "system"
    text: str
    timestamp: datetime = Field(default_factory=_now)


class UserItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["user"] = "user"
    text: str = ""
    images: List[MediaAttachment] = Field(default_factory=list)
    audio: List[MediaAttachment] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_now)


class AssistantItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["assistant"] = "assistant"
    text: str
    timestamp: datetime = Field(default_factory=_now)


HistoryItem = Annotated[Union[SystemItem, UserItem, AssistantItem], Field(discriminator="type")]


class UserTurn(BaseModel):
    """A user message submitted to a chat session"""
    text: str = Field("", description="Text of the turn")
    images: List[MediaReference] = Field(default_factory=list, description="Images to resolve and attach")
    audio: List[MediaReference] = Field(default_factory=list, description="Audio to resolve and attach")
    image_embeddings: List[Embedding] = Field(
        default_factory=list, description="Precomputed image embeddings, attached without processing"
    )
    audio_embeddings: List[Embedding] = Field(
        default_factory=list, description="Precomputed audio embeddings, attached without processing"
    )

    @model_validator(mode="after")
    def _check_precomputed_modalities(self) -> "UserTurn":
        for expected, embeddings in (("image", self.image_embeddings), ("audio", self.audio_embeddings)):
            for embedding in embeddings:
                if embedding.modality.value != expected:
                    raise ValueError(f"{embedding.owner_id} is a {embedding.modality.value} embedding, expected {expected}")
        return self
