from typing import List

from pydantic import BaseModel, Field


class SamplingConfig(BaseModel):
    """Sampling parameters handed to the text engine"""
    max_tokens: int = Field(1000, gt=0, description="Maximum tokens to generate")
    temperature: float = Field(0.7, ge=0.0, description="Randomness of sampling")
    top_p: float = Field(0.9, gt=0.0, le=1.0)
    top_k: int = Field(40, ge=0)
    stop: List[str] = Field(default_factory=list, description="Stop sequences")
    trim_whitespace_suffix: bool = Field(False, description="Strip trailing whitespace from the response")


class EvaluationResult(BaseModel):
    """Token sequence produced from a mixed text/media input sequence"""
    tokens: List[int] = Field(default_factory=list)
    images_admitted: int = 0
    audio_admitted: int = 0
