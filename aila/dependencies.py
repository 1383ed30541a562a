"""Global dependencies for the application."""

from functools import lru_cache
from typing import Any

from fastapi import Depends, Request
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from aila.core.config import settings
from aila.core.exceptions import MissingApiKeyError, StorageUnavailableError
from aila.services.chat_store import ChatStore
from aila.services.completion_service import CompletionClient, LangChainCompletionClient
from aila.services.exchange_service import TurnExchangeService


@lru_cache
def get_llm() -> BaseChatModel:
    """Get the LLM instance based on the configured provider."""
    llm_config = settings.llm
    if not llm_config.active_api_key.get_secret_value():
        raise MissingApiKeyError(llm_config.provider)

    extra: dict[str, Any] = {}
    if llm_config.temperature is not None:
        extra["temperature"] = llm_config.temperature

    match llm_config.provider:
        case "google":
            return ChatGoogleGenerativeAI(
                model=llm_config.google_model,
                google_api_key=llm_config.google_api_key,
                **extra,
            )
        case "openai":
            return ChatOpenAI(
                model=llm_config.openai_model,
                api_key=llm_config.openai_api_key,
                **extra,
            )
        case "anthropic":
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=llm_config.anthropic_model,
                api_key=llm_config.anthropic_api_key,
                **extra,
            )
        case _:
            raise ValueError(f"Unsupported LLM provider: {llm_config.provider}")


def get_chat_store(request: Request) -> ChatStore:
    """Get the ChatStore opened by the application lifespan."""
    store: ChatStore | None = getattr(request.app.state, "chat_store", None)
    if store is None or not store.is_open:
        raise StorageUnavailableError(message="Chat database is not open")
    return store


def get_completion_client() -> CompletionClient:
    """Get the completion client for the configured LLM."""
    return LangChainCompletionClient(get_llm())


def get_exchange_service(
    store: ChatStore = Depends(get_chat_store),
    completion: CompletionClient = Depends(get_completion_client),
) -> TurnExchangeService:
    """Get TurnExchangeService bound to the open store."""
    return TurnExchangeService(
        store=store,
        completion=completion,
        config=settings.exchange,
    )
