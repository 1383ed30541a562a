"""Turn exchange: one user message, one model reply, saved as a pair."""

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from aila.core.exceptions import ExchangeError, RemoteError, StorageError
from aila.core.settings import ExchangeConfig
from aila.schemas.chat_schema import Turn
from aila.services.chat_store import ChatStore
from aila.services.completion_service import CompletionClient

logger = structlog.get_logger()

DEFAULT_EXCHANGE_CONFIG = ExchangeConfig(
    name_max_length=40,
    name_ellipsis="...",
    require_persistence=False,
)


def derive_chat_name(message: str, max_length: int = 40, ellipsis: str = "...") -> str:
    """Chat name from the first user message.

    The ellipsis is added only when the message is strictly longer than
    ``max_length``.
    """
    if len(message) > max_length:
        return message[:max_length] + ellipsis
    return message


@dataclass(frozen=True)
class ExchangeResult:
    """Outcome of a successful exchange."""

    text: str
    history: list[Turn]
    name: str | None
    persisted: bool


class TurnExchangeService:
    """Sends a user turn to the completion client and saves the result."""

    def __init__(
        self,
        store: ChatStore,
        completion: CompletionClient,
        config: ExchangeConfig = DEFAULT_EXCHANGE_CONFIG,
    ) -> None:
        self._store = store
        self._completion = completion
        self._config = config

    async def send_turn(
        self,
        chat_id: str,
        message_text: str,
        prior_history: Sequence[Turn],
    ) -> ExchangeResult:
        """Complete one exchange for ``chat_id``.

        Nothing is written when the completion call fails. When the reply
        arrives but saving it fails, the reply is still returned with
        ``persisted=False`` unless ``require_persistence`` is set, in which
        case ExchangeError is raised.
        """
        prior = list(prior_history)
        user_turn = Turn(role="user", text=message_text)
        context = [*prior, user_turn]

        logger.info("Sending turn", chat_id=chat_id, prior_turns=len(prior))
        try:
            reply = await self._completion.complete(context, message_text)
        except RemoteError as exc:
            logger.error(
                "Turn exchange failed", chat_id=chat_id, code=exc.code, error=exc.message
            )
            raise ExchangeError(exc) from exc
        logger.info("Received reply", chat_id=chat_id, preview=reply[:50])

        updated_history = [*context, Turn(role="model", text=reply)]
        name: str | None = None
        try:
            name = await self._resolve_name(chat_id, message_text, prior)
            await self._store.upsert_chat(chat_id, name, updated_history)
        except StorageError as exc:
            logger.exception(
                "Reply received but chat history was not saved",
                chat_id=chat_id,
                code=exc.code,
            )
            if self._config.require_persistence:
                raise ExchangeError(exc) from exc
            return ExchangeResult(
                text=reply, history=updated_history, name=name, persisted=False
            )

        return ExchangeResult(
            text=reply, history=updated_history, name=name, persisted=True
        )

    async def _resolve_name(
        self, chat_id: str, message_text: str, prior: list[Turn]
    ) -> str | None:
        if not prior:
            return derive_chat_name(
                message_text,
                max_length=self._config.name_max_length,
                ellipsis=self._config.name_ellipsis,
            )
        return await self._store.get_name(chat_id)
