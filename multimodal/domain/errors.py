from typing import Optional


class MultimodalError(Exception):
    """Base class for all multimodal errors."""
    pass


class UseAfterDisposeError(MultimodalError):
    """Raised when a disposed model, context or session is used."""

    def __init__(self, component: str):
        super().__init__(f"{component} is disposed")
        self.component = component


class UnsupportedModalityError(MultimodalError):
    """Raised when vision or audio is disabled or missing from the loaded artifacts."""

    def __init__(self, modality: str, reason: Optional[str] = None):
        message = f"{modality} processing is not available"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.modality = modality


class MediaProcessingError(MultimodalError):
    """Raised when reading, decoding, encoding or transcribing a media item fails."""

    def __init__(self, stage: str, cause: BaseException, cache_key: Optional[str] = None):
        super().__init__(f"Media {stage} failed: {cause}")
        self.stage = stage
        self.cause = cause
        self.cache_key = cache_key


class CapacityMisconfigurationError(MultimodalError, ValueError):
    """Raised at construction when a cache or window size is not positive."""

    def __init__(self, name: str, value: int):
        super().__init__(f"{name} must be a positive integer, got {value!r}")
        self.name = name
        self.value = value


# Errors raised by media processor implementations

class MediaFormatError(MultimodalError):
    """Unsupported mime type or malformed media bytes."""
    pass


class EncoderCapabilityError(MultimodalError):
    """The loaded encoder lacks support for the requested modality or feature."""
    pass


def ensure_positive(name: str, value: int) -> int:
    """Validate a configured size, raising CapacityMisconfigurationError"""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise CapacityMisconfigurationError(name, value)
    return value
