"""Prompt assembly for the assistant.

Classes:
    PromptMessage: Role-tagged message sent to the chat completions endpoint.
    PromptComposer: Builds the ordered prompt from persona text, profile, retrieved context, and history.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional, Sequence

from cortex.core.config import Settings, get_settings
from cortex.models import Profile
from cortex.services.retrieval import RetrievedContextItem
from cortex.utils.text import truncate
from cortex.utils.tokenization import fits_token_budget

PromptRole = Literal["system", "user", "assistant"]

PERSONA_PROMPT = """You are Cortex, an intelligent personal assistant that helps users manage their daily life with a warm, professional, and proactive approach.

Key capabilities:
- Schedule and calendar management
- Task prioritization and organization
- Proactive suggestions and reminders
- Quick note-taking and retrieval
- Productivity insights and coaching

Personality:
- Warm, encouraging, and supportive
- Concise but thorough responses
- Proactive in offering helpful suggestions
- Professional yet approachable tone

Keep responses conversational and under 100 words unless detailed information is specifically requested. Always aim to be helpful and actionable."""

PROFILE_HEADER = "User profile:"
CONTEXT_HEADER = "Relevant past context:"


@dataclass(slots=True, frozen=True)
class PromptMessage:
    role: PromptRole
    content: str

    def as_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _format_number(value: float | int) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def _measurement(value: float | int, unit: Optional[str]) -> str:
    if _present(unit):
        return f"{_format_number(value)} {unit.strip()}"  # type: ignore[union-attr]
    return _format_number(value)


class PromptComposer:
    """Compose the message list for a single completion request.

    The system message carries the persona, then one line per profile attribute that is
    present, then the retrieved context bullets when there are any. Only the most recent
    `history_window` turns of history are kept.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        persona: str = PERSONA_PROMPT,
        fits_budget: Callable[[str, int], bool] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._persona = persona
        self._fits_budget = fits_budget or (
            lambda text, budget: fits_token_budget(text, budget, self._settings.openai_chat_model)
        )

    def profile_lines(self, profile: Optional[Profile]) -> list[str]:
        if profile is None:
            return []
        limit = self._settings.max_profile_field_chars
        lines: list[str] = []
        if _present(profile.nickname):
            lines.append(f"Nickname: {truncate(profile.nickname.strip(), limit)}")
        if profile.age is not None:
            lines.append(f"Age: {profile.age}")
        if _present(profile.gender):
            lines.append(f"Gender: {truncate(profile.gender.strip(), limit)}")
        if profile.height is not None:
            lines.append(f"Height: {_measurement(profile.height, profile.height_unit)}")
        if profile.weight is not None:
            lines.append(f"Weight: {_measurement(profile.weight, profile.weight_unit)}")
        if _present(profile.bio):
            lines.append(f"Bio: {truncate(profile.bio.strip(), limit)}")
        return lines

    def system_prompt(
        self,
        profile: Optional[Profile],
        retrieved_items: Sequence[RetrievedContextItem],
    ) -> str:
        sections = [self._persona]
        lines = self.profile_lines(profile)
        if lines:
            sections.append("\n".join([PROFILE_HEADER, *lines]))

        base = "\n\n".join(sections)
        items = list(retrieved_items)
        budget = self._settings.max_system_prompt_tokens
        while items:
            candidate = "\n\n".join(
                [base, "\n".join([CONTEXT_HEADER, *(f"- {item.content}" for item in items)])]
            )
            if self._fits_budget(candidate, budget):
                return candidate
            items.pop()
        return base

    def compose(
        self,
        profile: Optional[Profile],
        retrieved_items: Sequence[RetrievedContextItem],
        recent_history: Sequence[PromptMessage],
        user_message: str,
    ) -> list[PromptMessage]:
        messages = [PromptMessage(role="system", content=self.system_prompt(profile, retrieved_items))]
        window = self._settings.history_window
        if window > 0:
            messages.extend(recent_history[-window:])
        messages.append(PromptMessage(role="user", content=user_message))
        return messages
