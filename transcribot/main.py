from __future__ import annotations

"""Entry points: FastAPI app for webhook mode and a CLI for polling mode."""

import asyncio
import sys
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from transcribot.bot.loader import build_app_context, close_app_context
from transcribot.bot.services.logging import configure_logging, get_logger
from transcribot.bot.services.metrics import metrics
from transcribot.bot.webhook import drain_inflight, router as webhook_router
from transcribot.config.settings import Settings, get_settings


logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    ctx = build_app_context(settings)
    app.state.app_ctx = ctx
    try:
        yield
    finally:
        # updates still being transcribed need the bot session and http client
        await drain_inflight(settings.shutdown_grace_seconds)
        await close_app_context(ctx)


app = FastAPI(lifespan=lifespan)
app.include_router(webhook_router)


@app.middleware("http")
async def add_trace_id(request: Request, call_next):
    trace_id = request.headers.get("X-Trace-Id") or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(trace_id=trace_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    return response


@app.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> str:
    return "ok"


@app.get("/metrics", response_class=PlainTextResponse)
async def metrics_endpoint() -> str:
    return metrics.to_prometheus()


async def run_polling(settings: Settings) -> None:
    ctx = build_app_context(settings)
    try:
        await ctx.bot.delete_webhook(drop_pending_updates=False)
        logger.info("polling_start")
        # start_polling installs SIGINT/SIGTERM handlers for a graceful stop
        await ctx.dp.start_polling(ctx.bot, allowed_updates=ctx.dp.resolve_used_update_types())
    finally:
        await close_app_context(ctx)


def cli() -> None:
    try:
        settings = get_settings()
    except (ValidationError, ValueError) as exc:
        configure_logging()
        logger.error("invalid_configuration", error=str(exc))
        sys.exit(1)

    configure_logging(settings.log_level, settings.log_format)
    logger.info("startup", run_mode=settings.run_mode, stt_mode=settings.stt.mode)

    if settings.run_mode == "webhook":
        import uvicorn

        uvicorn.run("transcribot.main:app", host=settings.app_host, port=settings.app_port)
        return
    asyncio.run(run_polling(settings))


if __name__ == "__main__":
    cli()
