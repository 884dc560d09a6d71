from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Resolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int
    height: int


class VisionCapabilities(BaseModel):
    """Read-only vision support descriptor derived from the loaded artifacts"""
    model_config = ConfigDict(frozen=True)

    supported: bool = Field(description="Whether vision processing is available")
    max_images: int = Field(4, description="Images accepted in a single inference")
    supported_formats: List[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp", "image/bmp"]
    )
    max_resolution: Resolution = Field(default_factory=lambda: Resolution(width=1344, height=1344))
    supports_image_understanding: bool = True
    supports_vqa: bool = True


class AudioCapabilities(BaseModel):
    """Read-only audio support descriptor derived from the loaded artifacts"""
    model_config = ConfigDict(frozen=True)

    supported: bool = Field(description="Whether audio processing is available")
    max_audio_files: int = Field(1, description="Audio files accepted in a single inference")
    supported_formats: List[str] = Field(
        default_factory=lambda: ["audio/wav", "audio/mp3", "audio/flac", "audio/ogg"]
    )
    max_duration: float = Field(300, description="Maximum audio duration in seconds")
    supported_sample_rates: List[int] = Field(default_factory=lambda: [16000, 22050, 44100, 48000])
    supports_speech_to_text: bool = True
    supported_languages: List[str] = Field(
        default_factory=lambda: ["en", "es", "fr", "de", "it", "pt", "ru", "ja", "ko", "zh"]
    )
