from .settings import MultimodalSettings

__all__ = ["MultimodalSettings"]
