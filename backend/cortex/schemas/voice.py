"""Pydantic schemas for the voice command endpoint.

Classes:
    HistoryTurn: A prior conversation turn supplied by the caller.
    VoiceCommandRequest: Inbound command payload (camelCase on the wire).
    ExchangeEmbeddings: Vectors computed for the user message and the assistant reply.
    VoiceCommandResponse, VoiceCommandError: Success and failure envelopes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HistoryTurn(_CamelModel):
    role: Literal["user", "assistant"]
    content: StrictStr


class VoiceCommandRequest(_CamelModel):
    message: StrictStr
    user_id: StrictStr
    conversation_id: Optional[UUID] = None
    conversation_history: Optional[list[HistoryTurn]] = None
    is_voice: StrictBool = False


class ExchangeEmbeddings(_CamelModel):
    user_message: list[float]
    assistant_response: Optional[list[float]] = None


class VoiceCommandResponse(_CamelModel):
    success: Literal[True] = True
    response: str
    timestamp: datetime
    conversation_id: Optional[UUID] = None
    embeddings: Optional[ExchangeEmbeddings] = Field(default=None)


class VoiceCommandError(_CamelModel):
    success: Literal[False] = False
    error: str
    timestamp: datetime
