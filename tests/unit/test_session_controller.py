"""Unit tests for SessionController."""

from unittest.mock import MagicMock

import pytest

from aila.core.exceptions import (
    EmptyMessageError,
    ExchangeError,
    NoActiveChatError,
    RemoteRejectedError,
    StorageCorruptError,
)
from aila.schemas.chat_schema import Turn
from aila.services.chat_store import ChatStore
from aila.services.exchange_service import TurnExchangeService
from aila.services.session_controller import SessionController, SessionState
from tests.conftest import write_raw_history


@pytest.fixture
def controller(chat_store: ChatStore, fake_completion: MagicMock) -> SessionController:
    exchange = TurnExchangeService(store=chat_store, completion=fake_completion)
    return SessionController(chat_store, exchange)


class TestNewChat:
    """Tests for starting a chat."""

    def test_initial_state(self, controller: SessionController) -> None:
        assert controller.state is SessionState.NO_ACTIVE_CHAT
        assert controller.active_chat_id is None
        assert controller.chat_history == []

    async def test_new_chat_is_not_persisted(
        self, controller: SessionController, chat_store: ChatStore
    ) -> None:
        chat_id = controller.new_chat()

        assert controller.state is SessionState.ACTIVE_EMPTY
        assert controller.active_chat_id == chat_id
        assert await chat_store.list_chats() == []

    async def test_new_chat_resets_history(self, controller: SessionController) -> None:
        first = controller.new_chat()
        await controller.send("Hello")

        second = controller.new_chat()

        assert second != first
        assert controller.chat_history == []


class TestSend:
    """Tests for sending messages."""

    async def test_success_appends_pair(
        self, controller: SessionController, chat_store: ChatStore
    ) -> None:
        chat_id = controller.new_chat()

        result = await controller.send("  Hello  ")

        assert result.text == "Test response"
        assert controller.state is SessionState.ACTIVE_WITH_HISTORY
        assert controller.chat_history == [
            Turn(role="user", text="Hello"),
            Turn(role="model", text="Test response"),
        ]
        assert await chat_store.get_history(chat_id) == controller.chat_history

    async def test_failure_leaves_state_unchanged(
        self, controller: SessionController, fake_completion: MagicMock
    ) -> None:
        controller.new_chat()
        await controller.send("First")
        before = list(controller.chat_history)
        fake_completion.complete.side_effect = RemoteRejectedError("nope")

        with pytest.raises(ExchangeError):
            await controller.send("Second")

        assert controller.chat_history == before
        assert controller.state is SessionState.ACTIVE_WITH_HISTORY
        assert controller.is_sending is False

    async def test_failure_on_empty_chat_stays_empty(
        self, controller: SessionController, fake_completion: MagicMock
    ) -> None:
        controller.new_chat()
        fake_completion.complete.side_effect = RemoteRejectedError("nope")

        with pytest.raises(ExchangeError):
            await controller.send("Hello")

        assert controller.state is SessionState.ACTIVE_EMPTY

    async def test_send_without_active_chat(self, controller: SessionController) -> None:
        with pytest.raises(NoActiveChatError):
            await controller.send("Hello")

    async def test_blank_message_rejected(self, controller: SessionController) -> None:
        controller.new_chat()
        with pytest.raises(EmptyMessageError):
            await controller.send("   \n")

    async def test_is_sending_while_in_flight(
        self, controller: SessionController, fake_completion: MagicMock
    ) -> None:
        observed: list[bool] = []

        async def complete(context: list[Turn], new_message: str) -> str:
            observed.append(controller.is_sending)
            return "ok"

        fake_completion.complete.side_effect = complete
        controller.new_chat()

        await controller.send("Hello")

        assert observed == [True]
        assert controller.is_sending is False

    async def test_history_sent_excludes_current_message(
        self, controller: SessionController, fake_completion: MagicMock
    ) -> None:
        controller.new_chat()
        await controller.send("One")
        await controller.send("Two")

        context, _ = fake_completion.complete.call_args.args
        assert [t.text for t in context] == ["One", "Test response", "Two"]


class TestLoadChat:
    """Tests for switching to a saved chat."""

    async def test_load_replaces_history(
        self, controller: SessionController, chat_store: ChatStore
    ) -> None:
        saved = [Turn(role="user", text="Old Q"), Turn(role="model", text="Old A")]
        await chat_store.upsert_chat("saved", "Old", saved)
        controller.new_chat()
        await controller.send("Current")

        history = await controller.load_chat("saved")

        assert history == saved
        assert controller.active_chat_id == "saved"
        assert controller.chat_history == saved
        assert controller.state is SessionState.ACTIVE_WITH_HISTORY

    async def test_load_active_chat_is_noop(
        self, controller: SessionController, chat_store: ChatStore
    ) -> None:
        chat_id = controller.new_chat()
        await controller.send("Hello")
        await chat_store.delete_chat(chat_id)

        history = await controller.load_chat(chat_id)

        assert len(history) == 2

    async def test_load_failure_falls_back(
        self,
        controller: SessionController,
        chat_store: ChatStore,
        database_url: str,
    ) -> None:
        await chat_store.upsert_chat("broken", "Broken", [])
        await write_raw_history(database_url, "broken", "not-json")
        controller.new_chat()

        with pytest.raises(StorageCorruptError):
            await controller.load_chat("broken")

        assert controller.state is SessionState.NO_ACTIVE_CHAT
        assert controller.chat_history == []


class TestDelete:
    """Tests for deleting chats through the controller."""

    async def test_delete_active_resets(
        self, controller: SessionController, chat_store: ChatStore
    ) -> None:
        chat_id = controller.new_chat()
        await controller.send("Hello")

        deleted = await controller.delete_active()

        assert deleted == 1
        assert controller.state is SessionState.NO_ACTIVE_CHAT
        assert await chat_store.get_history(chat_id) == []

    async def test_delete_active_by_id_resets(
        self, controller: SessionController
    ) -> None:
        chat_id = controller.new_chat()
        await controller.send("Hello")

        await controller.delete_chat(chat_id)

        assert controller.state is SessionState.NO_ACTIVE_CHAT

    async def test_delete_unsaved_active_chat(
        self, controller: SessionController
    ) -> None:
        controller.new_chat()

        assert await controller.delete_active() == 0
        assert controller.state is SessionState.NO_ACTIVE_CHAT

    async def test_delete_other_keeps_session(
        self, controller: SessionController, chat_store: ChatStore
    ) -> None:
        await chat_store.upsert_chat("other", "Other", [])
        chat_id = controller.new_chat()
        await controller.send("Hello")
        before = list(controller.chat_history)

        assert await controller.delete_chat("other") == 1

        assert controller.active_chat_id == chat_id
        assert controller.chat_history == before
        assert [c.id for c in await controller.list_chats()] == [chat_id]

    async def test_delete_without_active_chat(
        self, controller: SessionController
    ) -> None:
        assert await controller.delete_active() == 0
