"""Chat turn, history and exchange schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class Turn(BaseModel):
    """One message within a chat, tagged with its author role."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    text: str

    @model_validator(mode="before")
    @classmethod
    def _flatten_parts(cls, data: Any) -> Any:
        """Accept the ``{"role", "parts": [{"text"}]}`` shape of older saves."""
        if isinstance(data, dict) and "text" not in data and "parts" in data:
            parts = data["parts"]
            if isinstance(parts, list) and parts and isinstance(parts[0], dict):
                return {"role": data.get("role"), "text": parts[0].get("text")}
        return data


history_adapter: TypeAdapter[list[Turn]] = TypeAdapter(list[Turn])


class ChatSummary(BaseModel):
    """Chat list entry; never carries the history payload."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str | None = None
    updated_at: datetime

    @property
    def display_name(self) -> str:
        """Stored name, or a short placeholder derived from the id."""
        return self.name or f"Chat {self.id[:8]}..."


class ChatRecord(BaseModel):
    """A fully loaded chat row."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    history: list[Turn] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class NewChatResponse(BaseModel):
    """Freshly minted chat id; nothing is stored yet."""

    id: str


class ChatHistoryResponse(BaseModel):
    """Saved history of one chat."""

    chat_id: str
    history: list[Turn]


class ChatNameResponse(BaseModel):
    """Saved display name of one chat."""

    chat_id: str
    name: str | None = None


class SaveChatRequest(BaseModel):
    """Explicit save of a chat's name and full history."""

    name: str | None = Field(default=None, max_length=255)
    history: list[Turn] = Field(default_factory=list)


class SaveChatResponse(BaseModel):
    """Result of an upsert."""

    id: str


class DeleteChatResponse(BaseModel):
    """Result of a delete; ``deleted_count`` is 0 for unknown ids."""

    deleted_count: Literal[0, 1]


class SendMessageRequest(BaseModel):
    """A new user message plus the history that precedes it."""

    message: str = Field(..., min_length=1, max_length=4000)
    history: list[Turn] = Field(default_factory=list)


class SendMessageResponse(BaseModel):
    """Model reply for one exchange.

    ``persisted`` is False when the reply was produced but the updated
    history could not be saved.
    """

    text: str
    persisted: bool = True
