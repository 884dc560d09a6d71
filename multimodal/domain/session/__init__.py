from .chat_session import MultimodalChatSession
from .transcript import PromptTemplate, Transcript

__all__ = ["MultimodalChatSession", "PromptTemplate", "Transcript"]
