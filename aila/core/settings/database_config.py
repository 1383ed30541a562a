"""Local chat database configuration."""

from pathlib import Path

from pydantic import BaseModel


class DatabaseConfig(BaseModel, frozen=True):
    """SQLite file that holds the chats table."""

    path: Path

    @property
    def async_url(self) -> str:
        """aiosqlite URL for the configured file (``:memory:`` passes through)."""
        if str(self.path) == ":memory:":
            return "sqlite+aiosqlite:///:memory:"
        return f"sqlite+aiosqlite:///{self.path}"
