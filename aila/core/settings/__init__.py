"""Domain-specific configuration models."""

from aila.core.settings.app_config import AppConfig
from aila.core.settings.database_config import DatabaseConfig
from aila.core.settings.exchange_config import ExchangeConfig
from aila.core.settings.llm_config import LLMConfig
from aila.core.settings.server_config import ServerConfig

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "ExchangeConfig",
    "LLMConfig",
    "ServerConfig",
]
