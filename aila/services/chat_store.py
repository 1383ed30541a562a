"""Durable chat storage backed by a local SQLite file.

A ``ChatStore`` owns its engine: it is opened once with :meth:`init`, handed
to the components that need it, and released with :meth:`close`.
"""

import asyncio
import uuid
from collections import Counter
from collections.abc import AsyncGenerator, Callable, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

import structlog
from pydantic import ValidationError
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from aila.core.database import Base, build_engine, build_session_factory
from aila.core.exceptions import StorageCorruptError, StorageUnavailableError
from aila.repositories.chat_repo import ChatRepository
from aila.schemas.chat_schema import ChatRecord, ChatSummary, Turn, history_adapter

logger = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class ChatStore:
    """Create, read, update and delete chat records."""

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._database_url = database_url
        self._echo = echo
        self._clock = clock
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @staticmethod
    def generate_id() -> str:
        """Return a fresh random 128-bit chat id."""
        return str(uuid.uuid4())

    async def init(self) -> None:
        """Open the database and make sure the chats table exists.

        Safe to call more than once.
        """
        if self._engine is not None:
            return
        try:
            self._ensure_parent_dir()
            engine = build_engine(self._database_url, echo=self._echo)
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (OSError, SQLAlchemyError) as exc:
            logger.error(
                "Failed to open chat database",
                url=self._database_url,
                error=str(exc),
            )
            raise StorageUnavailableError(
                message=f"Cannot open chat database: {exc}",
                operation="init_store",
            ) from exc

        self._engine = engine
        self._session_factory = build_session_factory(engine)
        logger.info("Chat database ready", url=self._database_url)

    async def close(self) -> None:
        """Release the database handle. No-op when already closed."""
        if self._engine is None:
            return
        engine = self._engine
        self._engine = None
        self._session_factory = None
        try:
            await engine.dispose()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(
                message=f"Error closing chat database: {exc}",
                operation="close_store",
            ) from exc
        logger.info("Chat database closed")

    async def upsert_chat(
        self, chat_id: str, name: str | None, history: Sequence[Turn]
    ) -> str:
        """Insert a chat, or replace its name and history keeping ``created_at``.

        Returns the chat id.
        """
        history_json = history_adapter.dump_json(list(history)).decode()
        async with self._chat_lock(chat_id):
            async with self._transaction("upsert_chat") as repo:
                now = self._clock()
                created_at = await repo.find_created_at(chat_id)
                if created_at is None:
                    await repo.create(chat_id, name, history_json, now)
                    rows = 1
                else:
                    updated_at = max(now, _as_utc(created_at))
                    rows = await repo.update_contents(
                        chat_id, name, history_json, updated_at
                    )
        logger.info("Chat saved", chat_id=chat_id, rows=rows, turns=len(history))
        return chat_id

    async def list_chats(self) -> list[ChatSummary]:
        """Chat summaries, most recently updated first."""
        async with self._transaction("list_chats") as repo:
            rows = await repo.find_summaries()
        return [
            ChatSummary(id=row.id, name=row.name, updated_at=_as_utc(row.updated_at))
            for row in rows
        ]

    async def get_history(self, chat_id: str) -> list[Turn]:
        """Saved turns of a chat; ``[]`` when the chat does not exist.

        Raises StorageCorruptError when the stored blob cannot be decoded.
        """
        async with self._transaction("load_history") as repo:
            blob = await repo.find_history_blob(chat_id)
        if not blob:
            return []
        return self._decode_history(chat_id, blob, operation="load_history")

    async def get_name(self, chat_id: str) -> str | None:
        """Saved display name of a chat, or None."""
        async with self._transaction("get_chat_name") as repo:
            return await repo.find_name(chat_id)

    async def get_chat(self, chat_id: str) -> ChatRecord | None:
        """Load a full record, including timestamps."""
        async with self._transaction("get_chat") as repo:
            chat = await repo.find_by_id(chat_id)
        if chat is None:
            return None
        history = (
            self._decode_history(chat_id, chat.history, operation="get_chat")
            if chat.history
            else []
        )
        return ChatRecord(
            id=chat.id,
            name=chat.name,
            history=history,
            created_at=_as_utc(chat.created_at),
            updated_at=_as_utc(chat.updated_at),
        )

    async def delete_chat(self, chat_id: str) -> int:
        """Delete a chat. Returns 1 when removed, 0 when it did not exist."""
        async with self._chat_lock(chat_id):
            async with self._transaction("delete_chat") as repo:
                deleted = await repo.delete_by_id(chat_id)
        if deleted == 0:
            logger.warning("Delete requested for unknown chat", chat_id=chat_id)
        else:
            logger.info("Chat deleted", chat_id=chat_id)
        return deleted

    @asynccontextmanager
    async def _chat_lock(self, chat_id: str) -> AsyncGenerator[None, None]:
        """Serialize writes to one chat id.

        The lock is dropped once nobody holds or waits on it.
        """
        lock = self._locks.setdefault(chat_id, asyncio.Lock())
        self._lock_users[chat_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[chat_id] -= 1
            if not self._lock_users[chat_id]:
                del self._lock_users[chat_id]
                del self._locks[chat_id]

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncGenerator[ChatRepository, None]:
        """Run repository calls in one committed transaction."""
        if self._session_factory is None:
            raise StorageUnavailableError(
                message="Chat database is not open", operation=operation
            )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield ChatRepository(session)
        except SQLAlchemyError as exc:
            logger.error("Chat storage failure", operation=operation, error=str(exc))
            raise StorageUnavailableError(
                message=f"Chat storage failure during {operation}: {exc}",
                operation=operation,
            ) from exc

    @staticmethod
    def _decode_history(chat_id: str, blob: str, operation: str) -> list[Turn]:
        try:
            return history_adapter.validate_json(blob)
        except ValidationError as exc:
            logger.error(
                "Stored chat history is corrupt", chat_id=chat_id, error=str(exc)
            )
            raise StorageCorruptError(chat_id, operation=operation) from exc

    def _ensure_parent_dir(self) -> None:
        database = make_url(self._database_url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
