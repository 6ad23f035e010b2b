from __future__ import annotations

"""Webhook endpoint for Telegram updates."""

import asyncio

from aiogram.types import Update
from fastapi import APIRouter, Depends, HTTPException, Request, status

from transcribot.bot.services.logging import get_logger
from transcribot.config.settings import Settings, get_settings


router = APIRouter()

# Keep references so in-flight updates are not garbage collected
_inflight: set[asyncio.Task] = set()


def _check_secret(secret: str | None, settings: Settings) -> None:
    if not secret or secret != settings.webhook_secret:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="invalid secret")


async def _feed(app_ctx, update: Update) -> None:
    try:
        await app_ctx.dp.feed_update(app_ctx.bot, update)
    except Exception:
        get_logger().exception("update_dispatch_failed", update_id=update.update_id)


async def drain_inflight(timeout: float) -> None:
    """Wait up to `timeout` seconds for dispatched updates before shutdown."""

    pending = list(_inflight)
    if not pending:
        return
    get_logger().info("inflight_drain_start", pending=len(pending))
    try:
        await asyncio.wait_for(asyncio.gather(*pending, return_exceptions=True), timeout=timeout)
    except asyncio.TimeoutError:
        get_logger().warning("inflight_drain_timeout", pending=len(_inflight))


@router.post("/tg/webhook")
async def telegram_webhook(request: Request, secret: str | None = None, settings: Settings = Depends(get_settings)) -> dict:
    _check_secret(secret, settings)
    body = await request.json()
    update = Update.model_validate(body)
    # Transcriptions can take minutes; acknowledge now so Telegram does not redeliver
    task = asyncio.create_task(_feed(request.app.state.app_ctx, update))
    _inflight.add(task)
    task.add_done_callback(_inflight.discard)
    return {"ok": True}
