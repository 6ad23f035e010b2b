from __future__ import annotations

"""Build the application context: bot, dispatcher and pipeline collaborators."""

from dataclasses import dataclass

import httpx
from aiogram import Bot, Dispatcher

from transcribot.bot.handlers.commands import commands_router
from transcribot.bot.handlers.media import media_router
from transcribot.bot.middlewares.access import AccessMiddleware
from transcribot.bot.services.logging import get_logger
from transcribot.bot.services.pipeline import PipelineDeps
from transcribot.bot.services.platform import AiogramChatClient
from transcribot.bot.services.scratch import ensure_scratch_dir
from transcribot.bot.services.stt import build_transcriber
from transcribot.bot.services.transcoder import Transcoder
from transcribot.config.settings import Settings


logger = get_logger()


@dataclass
class AppContext:
    """Everything that lives from process start to shutdown."""

    settings: Settings
    bot: Bot
    dp: Dispatcher
    client: AiogramChatClient
    deps: PipelineDeps


def build_dispatcher(settings: Settings) -> Dispatcher:
    dp = Dispatcher()
    # outer middleware runs before filters, so it gates every message handler
    dp.message.outer_middleware(AccessMiddleware(settings.allowed_user_ids))
    dp.include_router(commands_router)
    dp.include_router(media_router)
    return dp


def build_app_context(settings: Settings) -> AppContext:
    scratch_dir = ensure_scratch_dir(settings.scratch_dir.resolve())
    http = httpx.AsyncClient(
        timeout=httpx.Timeout(float(settings.download_timeout_seconds)),
        follow_redirects=True,
    )
    deps = PipelineDeps(
        http=http,
        transcoder=Transcoder(settings.ffmpeg.binary, settings.ffmpeg.timeout_seconds),
        transcriber=build_transcriber(settings.stt, scratch_dir=scratch_dir, client=http),
        scratch_dir=scratch_dir,
        max_message_length=settings.max_message_length,
    )
    bot = Bot(token=settings.telegram_bot_token)
    dp = build_dispatcher(settings)
    ctx = AppContext(settings=settings, bot=bot, dp=dp, client=AiogramChatClient(bot), deps=deps)
    # injected into handlers as the `app_ctx` keyword argument
    dp["app_ctx"] = ctx

    allowed = settings.allowed_user_ids
    if not allowed:
        logger.warning("no_authorized_users", detail="bot is accessible to everyone")
    logger.info(
        "bot_setup_complete",
        stt_mode=settings.stt.mode,
        scratch_dir=str(scratch_dir),
        authorized_users=len(allowed),
    )
    return ctx


async def close_app_context(ctx: AppContext) -> None:
    await ctx.deps.transcriber.aclose()
    await ctx.deps.http.aclose()
    await ctx.bot.session.close()
    logger.info("bot_shutdown_complete")
