from typing import Annotated, Any, Dict, Literal, Optional, Union
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Modality(str, Enum):
    """Media modality an input is processed as"""
    IMAGE = "image"
    AUDIO = "audio"


class AudioProcessingOptions(BaseModel):
    """Options forwarded to the audio decoder and transcriber"""
    model_config = ConfigDict(frozen=True)

    sample_rate: Optional[int] = Field(None, description="Target sample rate in Hz")
    channels: Optional[int] = Field(None, description="1 for mono, 2 for stereo")
    max_duration: Optional[float] = Field(None, description="Duration limit in seconds")
    normalize: Optional[bool] = Field(None, description="Normalize audio levels")
    language: Optional[str] = Field(None, description="Language hint for speech recognition")
    generate_transcript: Optional[bool] = Field(None, description="Generate a transcript alongside the embedding")

    def merged_with(self, **overrides: Any) -> "AudioProcessingOptions":
        """Return a copy with every non-None override applied"""
        updates = {key: value for key, value in overrides.items() if value is not None}
        return self.model_copy(update=updates) if updates else self

    def canonical(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class _MediaRefBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(None, description="Caller supplied identifier")
    description: Optional[str] = Field(None, description="Description or caption")
    options: Optional[AudioProcessingOptions] = Field(
        None, description="Processing options, honoured for audio only"
    )


class PathRef(_MediaRefBase):
    """Media stored on the local filesystem"""
    kind: Literal["path"] = "path"
    path: str = Field(description="Path to the media file")


class InlineRef(_MediaRefBase):
    """Base64 encoded media payload"""
    kind: Literal["inline"] = "inline"
    data: str = Field(description="Base64 encoded payload")
    mime_type: str = Field(description="MIME type, e.g. image/png or audio/wav")


class BufferRef(_MediaRefBase):
    """Raw media bytes held in memory"""
    kind: Literal["buffer"] = "buffer"
    buffer: bytes = Field(description="Raw payload bytes")
    mime_type: str = Field(description="MIME type, e.g. image/png or audio/wav")


MediaReference = Annotated[Union[PathRef, InlineRef, BufferRef], Field(discriminator="kind")]


class MediaInput(BaseModel):
    """A media reference explicitly tagged with the modality it should be processed as"""
    model_config = ConfigDict(frozen=True)

    modality: Modality
    ref: MediaReference

    @classmethod
    def image(cls, ref: MediaReference) -> "MediaInput":
        return cls(modality=Modality.IMAGE, ref=ref)

    @classmethod
    def audio(cls, ref: MediaReference) -> "MediaInput":
        return cls(modality=Modality.AUDIO, ref=ref)
