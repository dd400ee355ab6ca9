"""Service layer exports.

Expose the assistant pipeline components and storage services for easy importing.
"""

from .assistant import VoiceCommandService
from .conversations import ConversationService, ExchangePersister
from .openai_client import CompletionClient, EmbeddingClient
from .profiles import ProfileLoader, ProfileService
from .prompting import PromptComposer, PromptMessage
from .retrieval import ContextRetriever, RetrievedContextItem

__all__ = [
    "CompletionClient",
    "ContextRetriever",
    "ConversationService",
    "EmbeddingClient",
    "ExchangePersister",
    "ProfileLoader",
    "ProfileService",
    "PromptComposer",
    "PromptMessage",
    "RetrievedContextItem",
    "VoiceCommandService",
]
