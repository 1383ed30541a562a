"""Remote turn completion through a LangChain chat model."""

from collections.abc import Sequence
from typing import Protocol

import anthropic
import httpx
import openai
import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from aila.core.exceptions import (
    RemoteMalformedError,
    RemoteRejectedError,
    RemoteUnreachableError,
)
from aila.schemas.chat_schema import Turn

logger = structlog.get_logger()

# Transport failures raised by the provider SDKs behind the chat models.
CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
    openai.APIConnectionError,
    anthropic.APIConnectionError,
)

SYSTEM_PROMPT = (
    "You are Aila, an AI liaison: a fast, humanlike assistant that lives on "
    "the user's desktop.\n\n"
    "- Sound confident and professional, and respect the user's time.\n"
    "- Use clear, direct, semi-formal language. Dry, understated wit is "
    "welcome when the user repeats a mistake or works inefficiently.\n"
    "- Acknowledge feelings briefly, then move straight to solutions.\n"
    "- Back suggestions with reasoning and with patterns you notice in the "
    "conversation, never with empty encouragement.\n"
    "- Push back on assumptions when a better approach exists.\n\n"
    "Format answers with Markdown (lists, emphasis, code blocks) where it "
    "helps readability."
)


class CompletionClient(Protocol):
    """Anything that can turn a conversation into the next model reply."""

    async def complete(self, context: Sequence[Turn], new_message: str) -> str:
        """Return the reply to ``new_message``.

        ``context`` already ends with the user turn for ``new_message``.
        """
        ...


class LangChainCompletionClient:
    """Completion client that calls a LangChain ``BaseChatModel``."""

    def __init__(self, llm: BaseChatModel, system_prompt: str = SYSTEM_PROMPT) -> None:
        self._llm = llm
        self._system_prompt = system_prompt

    async def complete(self, context: Sequence[Turn], new_message: str) -> str:
        messages = self._build_messages(context, new_message)
        try:
            response = await self._llm.ainvoke(messages)
        except Exception as exc:
            logger.warning(
                "Completion call failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            if isinstance(exc, CONNECTION_ERRORS):
                raise RemoteUnreachableError(str(exc) or type(exc).__name__) from exc
            raise RemoteRejectedError(str(exc) or type(exc).__name__) from exc

        content = getattr(response, "content", None)
        text = self._content_to_text(content)
        if not text.strip():
            raise RemoteMalformedError()
        return text

    def _build_messages(
        self, context: Sequence[Turn], new_message: str
    ) -> list[BaseMessage]:
        """System prompt followed by the conversation in LangChain form."""
        messages: list[BaseMessage] = [SystemMessage(content=self._system_prompt)]
        for turn in context:
            if turn.role == "user":
                messages.append(HumanMessage(content=turn.text))
            else:
                messages.append(AIMessage(content=turn.text))
        if not context or context[-1].role != "user" or context[-1].text != new_message:
            messages.append(HumanMessage(content=new_message))
        return messages

    @staticmethod
    def _content_to_text(content: object) -> str:
        """Flatten string or content-block replies into plain text."""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for block in content:
                if isinstance(block, str):
                    parts.append(block)
                elif isinstance(block, dict) and block.get("type") == "text":
                    parts.append(str(block.get("text", "")))
            return "".join(parts)
        return ""
