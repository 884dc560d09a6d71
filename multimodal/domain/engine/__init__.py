from .base import DecodedMedia, MediaProcessor, TextEngine, TranscriptionResult

__all__ = ["DecodedMedia", "MediaProcessor", "TextEngine", "TranscriptionResult"]
