"""Chat API router: chat ids, saved chats and turn exchange."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Path

from aila.core.exceptions import EmptyMessageError
from aila.dependencies import get_chat_store, get_exchange_service
from aila.schemas.chat_schema import (
    ChatHistoryResponse,
    ChatNameResponse,
    ChatSummary,
    DeleteChatResponse,
    NewChatResponse,
    SaveChatRequest,
    SaveChatResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from aila.schemas.response_schema import ERROR_RESPONSES, ApiResponse, success_response
from aila.services.chat_store import ChatStore
from aila.services.exchange_service import TurnExchangeService

logger = structlog.get_logger()

router = APIRouter(
    prefix="/api/v1/chats",
    tags=["chats"],
    responses=ERROR_RESPONSES,
)

ChatStoreDep = Annotated[ChatStore, Depends(get_chat_store)]
ExchangeServiceDep = Annotated[TurnExchangeService, Depends(get_exchange_service)]
ChatId = Annotated[str, Path(min_length=1, max_length=36)]


@router.post("", response_model=ApiResponse[NewChatResponse])
async def create_chat_id() -> dict:
    """Mint an id for a new chat. Nothing is stored until the first reply."""
    return success_response(NewChatResponse(id=ChatStore.generate_id()))


@router.get("", response_model=ApiResponse[list[ChatSummary]])
async def list_chats(store: ChatStoreDep) -> dict:
    """List saved chats, most recently active first."""
    return success_response(await store.list_chats())


@router.get("/{chat_id}/history", response_model=ApiResponse[ChatHistoryResponse])
async def load_history(chat_id: ChatId, store: ChatStoreDep) -> dict:
    """Load the saved history of a chat (empty for unknown ids)."""
    logger.debug("Loading chat history", chat_id=chat_id)
    history = await store.get_history(chat_id)
    return success_response(ChatHistoryResponse(chat_id=chat_id, history=history))


@router.get("/{chat_id}/name", response_model=ApiResponse[ChatNameResponse])
async def get_chat_name(chat_id: ChatId, store: ChatStoreDep) -> dict:
    """Get the saved display name of a chat."""
    name = await store.get_name(chat_id)
    return success_response(ChatNameResponse(chat_id=chat_id, name=name))


@router.put("/{chat_id}", response_model=ApiResponse[SaveChatResponse])
async def save_chat(
    chat_id: ChatId, request: SaveChatRequest, store: ChatStoreDep
) -> dict:
    """Save a chat's name and full history."""
    saved_id = await store.upsert_chat(chat_id, request.name, request.history)
    return success_response(SaveChatResponse(id=saved_id), message="Chat saved")


@router.delete("/{chat_id}", response_model=ApiResponse[DeleteChatResponse])
async def delete_chat(chat_id: ChatId, store: ChatStoreDep) -> dict:
    """Delete a chat. Unknown ids are not an error."""
    deleted = await store.delete_chat(chat_id)
    return success_response(DeleteChatResponse(deleted_count=deleted))


@router.post("/{chat_id}/messages", response_model=ApiResponse[SendMessageResponse])
async def send_message(
    chat_id: ChatId,
    request: SendMessageRequest,
    exchange: ExchangeServiceDep,
) -> dict:
    """Send a user message and return the model reply."""
    text = request.message.strip()
    if not text:
        raise EmptyMessageError()
    result = await exchange.send_turn(chat_id, text, request.history)
    message = "Success" if result.persisted else "Reply not saved"
    return success_response(
        SendMessageResponse(text=result.text, persisted=result.persisted),
        message=message,
    )
