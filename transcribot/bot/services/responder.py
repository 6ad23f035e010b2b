from __future__ import annotations

"""Status notification that is edited in place through pipeline phases."""

from typing import Optional

from aiogram.exceptions import TelegramAPIError

from transcribot.bot.schemas.media import AttachmentKind
from transcribot.bot.services.logging import get_logger
from transcribot.bot.services.platform import ChatClient


TELEGRAM_MAX_MESSAGE_LENGTH = 4096
RESULT_HEADER = "Transcription:\n\n"
EMPTY_TRANSCRIPT = "[No speech detected or transcription empty]"
ERROR_SNIPPET_LENGTH = 100


def split_message(text: str, limit: int = TELEGRAM_MAX_MESSAGE_LENGTH) -> list[str]:
    """Cut text into consecutive slices of at most `limit` characters."""

    if limit <= 0:
        raise ValueError("limit must be positive")
    if len(text) <= limit:
        return [text]
    return [text[i : i + limit] for i in range(0, len(text), limit)]


def compose_result(transcript: str) -> str:
    return RESULT_HEADER + (transcript or EMPTY_TRANSCRIPT)


def error_text(kind: AttachmentKind, error: BaseException) -> str:
    details = str(error)[:ERROR_SNIPPET_LENGTH]
    return f"Sorry, there was an error processing your {kind.label}. Details: {details}"


class StatusNotification:
    """One outbound message per request; mutated phase by phase, never deleted."""

    def __init__(
        self,
        client: ChatClient,
        chat_id: int,
        *,
        limit: int = TELEGRAM_MAX_MESSAGE_LENGTH,
    ) -> None:
        self.client = client
        self.chat_id = chat_id
        self.limit = limit
        self.message_id: Optional[int] = None
        self.text: Optional[str] = None

    async def start(self, text: str) -> None:
        self.message_id = await self.client.send_text(self.chat_id, text)
        self.text = text

    async def update(self, text: str) -> None:
        if self.message_id is None:
            await self.start(text)
            return
        # Telegram rejects edits that do not change the text
        if text == self.text:
            return
        await self.client.edit_text(self.chat_id, self.message_id, text)
        self.text = text

    async def deliver(self, transcript: str) -> int:
        """Write the result, overflowing into extra messages; returns the part count."""

        chunks = split_message(compose_result(transcript), self.limit)
        await self.update(chunks[0])
        for chunk in chunks[1:]:
            await self.client.send_text(self.chat_id, chunk)
        return len(chunks)

    async def fail(self, kind: AttachmentKind, error: BaseException) -> None:
        """Report a failure; delivery problems are logged, never raised."""

        text = error_text(kind, error)
        try:
            if self.message_id is None:
                await self.client.send_text(self.chat_id, text)
            else:
                await self.update(text)
        except TelegramAPIError as exc:
            get_logger().error("notify_error_failed", chat_id=self.chat_id, error=str(exc))
