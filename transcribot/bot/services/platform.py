from __future__ import annotations

"""The three chat-platform operations the pipeline depends on."""

from typing import Protocol

from aiogram import Bot


class ChatClient(Protocol):
    async def send_text(self, chat_id: int, text: str) -> int:
        """Send a new message and return its message id."""

    async def edit_text(self, chat_id: int, message_id: int, text: str) -> None:
        ...

    async def file_url(self, file_id: str) -> str:
        """Resolve a file handle to a time-limited download URL."""


class AiogramChatClient:
    """ChatClient backed by an aiogram Bot."""

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def send_text(self, chat_id: int, text: str) -> int:
        sent = await self.bot.send_message(chat_id=chat_id, text=text)
        return sent.message_id

    async def edit_text(self, chat_id: int, message_id: int, text: str) -> None:
        await self.bot.edit_message_text(text=text, chat_id=chat_id, message_id=message_id)

    async def file_url(self, file_id: str) -> str:
        file = await self.bot.get_file(file_id)
        if not file.file_path:
            raise ValueError(f"Telegram returned no file_path for {file_id}")
        # honours a custom Bot API server configured on the session
        return self.bot.session.api.file_url(self.bot.token, file.file_path)
