"""Chat with the configured model from a terminal.

Usage:
    python -m scripts.chat_repl [--database ./data/chatbot-data.sqlite]

Commands: /new, /list, /load <id>, /delete <id>, /quit. Any other line is
sent as a message in the active chat.
"""

import argparse
import asyncio
from pathlib import Path

from aila.core.config import settings
from aila.core.exceptions import AppException
from aila.core.logging import configure_logging
from aila.core.settings import DatabaseConfig
from aila.dependencies import get_llm
from aila.services.chat_store import ChatStore
from aila.services.completion_service import LangChainCompletionClient
from aila.services.exchange_service import TurnExchangeService
from aila.services.session_controller import SessionController


async def handle_line(controller: SessionController, line: str) -> bool:
    """Run one command or message. Returns False when the user quits."""
    command, _, argument = line.partition(" ")
    argument = argument.strip()
    if command in ("/load", "/delete") and not argument:
        print(f"Usage: {command} <chat id>")
        return True

    match command:
        case "/quit":
            return False
        case "/new":
            chat_id = controller.new_chat()
            print(f"New chat {chat_id}")
        case "/list":
            chats = await controller.list_chats()
            if not chats:
                print("No saved chats.")
            for chat in chats:
                marker = "*" if chat.id == controller.active_chat_id else " "
                print(f"{marker} {chat.id}  {chat.display_name}")
        case "/load":
            history = await controller.load_chat(argument)
            if not history:
                print("Chat started. Ask me anything!")
            for turn in history:
                print(f"[{turn.role}] {turn.text}")
        case "/delete":
            deleted = await controller.delete_chat(argument)
            print("Deleted." if deleted else "No such chat.")
        case _:
            result = await controller.send(line)
            print(f"[model] {result.text}")
            if not result.persisted:
                print("(warning: this reply was not saved)")
    return True


async def repl(database: Path) -> None:
    """Read lines until /quit or end of input."""
    configure_logging(settings.app)
    completion = LangChainCompletionClient(get_llm())
    store = ChatStore(DatabaseConfig(path=database).async_url)
    await store.init()
    exchange = TurnExchangeService(
        store=store,
        completion=completion,
        config=settings.exchange,
    )
    controller = SessionController(store, exchange)

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            line = line.strip()
            if not line:
                continue
            try:
                if not await handle_line(controller, line):
                    break
            except AppException as exc:
                operation = exc.operation or "request"
                print(f"Error during {operation}: {exc.message}")
    finally:
        await store.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Terminal chat client")
    parser.add_argument(
        "--database",
        type=Path,
        default=settings.database.path,
        help="SQLite file holding saved chats",
    )
    args = parser.parse_args()

    asyncio.run(repl(args.database))


if __name__ == "__main__":
    main()
