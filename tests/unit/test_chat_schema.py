"""Tests for chat schemas."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from aila.schemas.chat_schema import (
    ChatSummary,
    SendMessageRequest,
    Turn,
    history_adapter,
)


class TestTurn:
    """Turn validation."""

    def test_valid_roles(self) -> None:
        assert Turn(role="user", text="a").role == "user"
        assert Turn(role="model", text="b").role == "model"

    def test_invalid_role(self) -> None:
        with pytest.raises(ValidationError):
            Turn(role="assistant", text="nope")  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        turn = Turn(role="user", text="a")
        with pytest.raises(ValidationError):
            turn.text = "b"  # type: ignore[misc]

    def test_legacy_parts_shape(self) -> None:
        turn = Turn.model_validate({"role": "model", "parts": [{"text": "hello"}]})
        assert turn == Turn(role="model", text="hello")

    def test_empty_parts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Turn.model_validate({"role": "user", "parts": []})

    def test_history_json_shape(self) -> None:
        blob = history_adapter.dump_json([Turn(role="user", text="hi")])
        assert blob == b'[{"role":"user","text":"hi"}]'


class TestSendMessageRequest:
    """SendMessageRequest validation."""

    def test_defaults_to_empty_history(self) -> None:
        request = SendMessageRequest(message="Hello")
        assert request.history == []

    def test_empty_message_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SendMessageRequest(message="")

    def test_too_long_message_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SendMessageRequest(message="a" * 4001)


class TestChatSummary:
    """ChatSummary display name fallback."""

    def test_display_name_uses_name(self) -> None:
        summary = ChatSummary(id="abc", name="Named", updated_at=datetime.now(UTC))
        assert summary.display_name == "Named"

    def test_display_name_falls_back_to_id(self) -> None:
        summary = ChatSummary(
            id="0123456789abcdef", name=None, updated_at=datetime.now(UTC)
        )
        assert summary.display_name == "Chat 01234567..."
