from __future__ import annotations

"""Handlers for voice, video, video note, audio and document messages."""

from typing import TYPE_CHECKING

from aiogram import F, Router
from aiogram.types import Message

from transcribot.bot.schemas.media import AttachmentKind
from transcribot.bot.services.classifier import classify, unsupported_reply
from transcribot.bot.services.logging import get_logger
from transcribot.bot.services.metrics import metrics
from transcribot.bot.services.pipeline import process_media

if TYPE_CHECKING:
    from transcribot.bot.loader import AppContext


media_router = Router(name="media")


@media_router.message(F.voice | F.video | F.video_note | F.audio | F.document)
async def on_media(message: Message, app_ctx: "AppContext") -> None:
    request = classify(message)
    if request is None:
        return

    if request.kind is AttachmentKind.unsupported:
        get_logger().info(
            "unsupported_document",
            message_id=request.message_id,
            mime_type=request.mime_type,
            file_name=request.file_name,
        )
        metrics.inc("requests_total", labels={"kind": request.kind.value, "outcome": "rejected"})
        await message.answer(unsupported_reply(request.mime_type))
        return

    await process_media(app_ctx.deps, app_ctx.client, request)
