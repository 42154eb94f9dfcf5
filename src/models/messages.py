"""Completion request models."""

from typing import List, Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ChatTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class CompletionRequest(BaseModel):
    """Ordered conversation turns sent to the completion provider.

    Frozen: once a request is submitted to the queue its turns cannot change,
    so its cache key stays valid for the whole lifetime of the entry.
    """

    model_config = ConfigDict(frozen=True)

    turns: Tuple[ChatTurn, ...]

    @classmethod
    def build(cls, system_prompt: str, history: List[ChatTurn], message: str) -> "CompletionRequest":
        turns: List[ChatTurn] = []
        if system_prompt:
            turns.append(ChatTurn(role="system", content=system_prompt))
        turns.extend(history)
        turns.append(ChatTurn(role="user", content=message))
        return cls(turns=tuple(turns))

    def to_provider_messages(self) -> List[dict]:
        return [{"role": turn.role, "content": turn.content} for turn in self.turns]


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    chat_history: List[ChatTurn] = Field(default_factory=list, alias="chatHistory")
