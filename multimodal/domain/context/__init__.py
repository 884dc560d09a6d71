from .context_window import ActiveWindow, ContextWindowManager
from .multimodal_context import MultimodalContext

__all__ = ["ActiveWindow", "ContextWindowManager", "MultimodalContext"]
