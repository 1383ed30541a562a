"""Client-side tracking of the single active chat."""

from enum import StrEnum

import structlog

from aila.core.exceptions import AppException, EmptyMessageError, NoActiveChatError
from aila.schemas.chat_schema import ChatSummary, Turn
from aila.services.chat_store import ChatStore
from aila.services.exchange_service import ExchangeResult, TurnExchangeService

logger = structlog.get_logger()


class SessionState(StrEnum):
    """Where the controller is in its chat lifecycle."""

    NO_ACTIVE_CHAT = "no_active_chat"
    ACTIVE_EMPTY = "active_empty"
    ACTIVE_WITH_HISTORY = "active_with_history"


class SessionController:
    """Holds the active chat id and an in-memory mirror of its history.

    The mirror changes only after storage or the exchange confirms the
    operation; failed sends and failed loads never leave a partial turn
    behind.
    """

    def __init__(self, store: ChatStore, exchange: TurnExchangeService) -> None:
        self._store = store
        self._exchange = exchange
        self.active_chat_id: str | None = None
        self.chat_history: list[Turn] = []
        self._sending = False

    @property
    def state(self) -> SessionState:
        if self.active_chat_id is None:
            return SessionState.NO_ACTIVE_CHAT
        if not self.chat_history:
            return SessionState.ACTIVE_EMPTY
        return SessionState.ACTIVE_WITH_HISTORY

    @property
    def is_sending(self) -> bool:
        """True while an exchange is in flight; hosts disable sending meanwhile."""
        return self._sending

    def new_chat(self) -> str:
        """Start an unsaved chat with a fresh id."""
        self.active_chat_id = self._store.generate_id()
        self.chat_history = []
        logger.info("New chat started", chat_id=self.active_chat_id)
        return self.active_chat_id

    async def send(self, text: str) -> ExchangeResult:
        """Send ``text`` in the active chat and append the exchange on success."""
        message = text.strip()
        if not message:
            raise EmptyMessageError()
        if self.active_chat_id is None:
            raise NoActiveChatError()

        chat_id = self.active_chat_id
        self._sending = True
        try:
            result = await self._exchange.send_turn(
                chat_id, message, list(self.chat_history)
            )
        finally:
            self._sending = False

        # The user may have switched chats while the reply was in flight.
        if self.active_chat_id == chat_id:
            self.chat_history = [
                *self.chat_history,
                Turn(role="user", text=message),
                Turn(role="model", text=result.text),
            ]
        return result

    async def load_chat(self, chat_id: str) -> list[Turn]:
        """Make ``chat_id`` active with its saved history.

        On failure the controller falls back to having no active chat and the
        error is re-raised.
        """
        if chat_id == self.active_chat_id:
            return list(self.chat_history)
        try:
            history = await self._store.get_history(chat_id)
        except AppException:
            logger.exception("Could not load chat", chat_id=chat_id)
            self._reset()
            raise
        self.active_chat_id = chat_id
        self.chat_history = history
        return list(history)

    async def delete_chat(self, chat_id: str) -> int:
        """Delete a saved chat; clears the session when it was the active one."""
        deleted = await self._store.delete_chat(chat_id)
        if chat_id == self.active_chat_id:
            self._reset()
        return deleted

    async def delete_active(self) -> int:
        """Delete the active chat, if any."""
        if self.active_chat_id is None:
            return 0
        return await self.delete_chat(self.active_chat_id)

    async def list_chats(self) -> list[ChatSummary]:
        return await self._store.list_chats()

    def _reset(self) -> None:
        self.active_chat_id = None
        self.chat_history = []
