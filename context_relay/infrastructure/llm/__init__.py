from .base import BaseCompletionClient
from .fake import FakeCompletionClient
from .groq import DEFAULT_REPLY, GroqCompletionClient

__all__ = [
    "BaseCompletionClient",
    "FakeCompletionClient",
    "GroqCompletionClient",
    "DEFAULT_REPLY",
]
