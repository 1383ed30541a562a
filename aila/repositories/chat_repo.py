"""Chat repository for chats-table queries."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from aila.models.chat import Chat


@dataclass(frozen=True)
class ChatSummaryRow:
    """Immutable result object for chat list queries."""

    id: str
    name: str | None
    updated_at: datetime


class ChatRepository:
    """Encapsulates chat database queries for one session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_id(self, chat_id: str) -> Chat | None:
        """Find a chat row by its id."""
        result = await self._session.execute(select(Chat).where(Chat.id == chat_id))
        return result.scalar_one_or_none()

    async def find_created_at(self, chat_id: str) -> datetime | None:
        """Return the creation time of a chat, or None when it does not exist."""
        result = await self._session.execute(
            select(Chat.created_at).where(Chat.id == chat_id)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        chat_id: str,
        name: str | None,
        history_json: str,
        now: datetime,
    ) -> Chat:
        """Insert a new chat with ``created_at == updated_at == now``."""
        chat = Chat(
            id=chat_id,
            name=name,
            history=history_json,
            created_at=now,
            updated_at=now,
        )
        self._session.add(chat)
        await self._session.flush()
        return chat

    async def update_contents(
        self,
        chat_id: str,
        name: str | None,
        history_json: str,
        updated_at: datetime,
    ) -> int:
        """Replace name and history of an existing chat. Returns rows affected."""
        result = await self._session.execute(
            update(Chat)
            .where(Chat.id == chat_id)
            .values(name=name, history=history_json, updated_at=updated_at)
        )
        return result.rowcount

    async def find_summaries(self) -> list[ChatSummaryRow]:
        """All chats, most recently updated first, without history."""
        result = await self._session.execute(
            select(Chat.id, Chat.name, Chat.updated_at).order_by(
                Chat.updated_at.desc(),
                Chat.id.desc(),
            )
        )
        return [
            ChatSummaryRow(id=row.id, name=row.name, updated_at=row.updated_at)
            for row in result
        ]

    async def find_history_blob(self, chat_id: str) -> str | None:
        """Raw serialized history of a chat."""
        result = await self._session.execute(
            select(Chat.history).where(Chat.id == chat_id)
        )
        return result.scalar_one_or_none()

    async def find_name(self, chat_id: str) -> str | None:
        """Stored display name of a chat."""
        result = await self._session.execute(select(Chat.name).where(Chat.id == chat_id))
        return result.scalar_one_or_none()

    async def delete_by_id(self, chat_id: str) -> int:
        """Hard-delete a chat. Returns rows affected (0 or 1)."""
        result = await self._session.execute(delete(Chat).where(Chat.id == chat_id))
        return result.rowcount
