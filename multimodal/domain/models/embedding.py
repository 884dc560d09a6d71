from typing import Any, Optional, Sequence, Tuple
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .media import Modality


class EmbeddingMetadata(BaseModel):
    """Processing details recorded alongside an embedding"""
    model_config = ConfigDict(frozen=True)

    processed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    model: Optional[str] = Field(None, description="Encoder/model tag")
    original_width: Optional[int] = Field(None, description="Image width before preprocessing")
    original_height: Optional[int] = Field(None, description="Image height before preprocessing")
    duration: Optional[float] = Field(None, description="Audio duration in seconds")
    sample_rate: Optional[int] = Field(None, description="Audio sample rate used for processing")
    channels: Optional[int] = Field(None, description="Audio channels processed")
    language: Optional[str] = Field(None, description="Language detected or used for the transcript")


class Embedding(BaseModel):
    """Immutable vector representation of one media item.

    Created once per distinct cache key by the embedding cache and shared by
    reference with every context window that admits it.
    """
    model_config = ConfigDict(frozen=True)

    vector: Tuple[float, ...] = Field(description="Embedding values")
    owner_id: str = Field(description="Explicit media id, or the cache key it was computed under")
    dimensions: int = Field(description="Length of the vector")
    modality: Modality
    transcript: Optional[str] = Field(None, description="Speech-to-text output, audio only")
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0, description="Transcript confidence, audio only")
    metadata: EmbeddingMetadata = Field(default_factory=EmbeddingMetadata)

    @model_validator(mode="after")
    def _check_dimensions(self) -> "Embedding":
        if self.dimensions != len(self.vector):
            raise ValueError(
                f"dimensions ({self.dimensions}) does not match vector length ({len(self.vector)})"
            )
        if self.modality == Modality.IMAGE and (self.transcript is not None or self.confidence is not None):
            raise ValueError("transcript and confidence are only valid for audio embeddings")
        return self

    @classmethod
    def from_vector(cls, vector: Sequence[float], owner_id: str, modality: Modality, **fields: Any) -> "Embedding":
        values = tuple(float(value) for value in vector)
        return cls(vector=values, dimensions=len(values), owner_id=owner_id, modality=modality, **fields)
