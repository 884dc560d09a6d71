from .multimodal_model import MultimodalModel

__all__ = ["MultimodalModel"]
