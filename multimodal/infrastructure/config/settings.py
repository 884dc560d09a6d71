from typing import Any, Callable, Dict, Optional
import os

from pydantic import BaseModel, Field


ENV_PREFIX = "MULTIMODAL_"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class MultimodalSettings(BaseModel):
    """Runtime configuration for models, contexts and logging"""

    enable_vision: bool = Field(True, description="Enable image processing")
    enable_audio: bool = Field(True, description="Enable audio processing")
    max_image_cache: int = Field(100, description="Image embeddings kept by the model cache")
    max_audio_cache: int = Field(50, description="Audio embeddings kept by the model cache")
    max_images_in_context: int = Field(4, description="Images live in a context window")
    max_audio_in_context: int = Field(2, description="Audio items live in a context window")
    temp_dir: Optional[str] = Field(None, description="Directory for temporary media files")
    log_level: str = Field("INFO")
    log_format: str = Field("json", description="json or console")
    service_name: str = Field("multimodal")

    @classmethod
    def from_env(cls, **overrides: Any) -> "MultimodalSettings":
        """Build settings from MULTIMODAL_* environment variables.

        Explicit keyword overrides win over the environment.
        """

        parsers: Dict[str, Callable[[str], Any]] = {
            "enable_vision": _env_bool,
            "enable_audio": _env_bool,
            "max_image_cache": int,
            "max_audio_cache": int,
            "max_images_in_context": int,
            "max_audio_in_context": int,
            "temp_dir": str,
            "log_level": str,
            "log_format": str,
            "service_name": str,
        }

        values: Dict[str, Any] = {}
        for name, parse in parsers.items():
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = parse(raw)

        values.update(overrides)
        return cls(**values)
