from __future__ import annotations

"""Per-request flow: download, extract audio if needed, transcribe, reply."""

from dataclasses import dataclass
from pathlib import Path
from time import perf_counter

import httpx

from transcribot.bot.schemas.media import InboundRequest
from transcribot.bot.services.errors import PipelineError
from transcribot.bot.services.logging import get_logger
from transcribot.bot.services.metrics import metrics
from transcribot.bot.services.platform import ChatClient
from transcribot.bot.services.responder import TELEGRAM_MAX_MESSAGE_LENGTH, StatusNotification
from transcribot.bot.services.retriever import download
from transcribot.bot.services.scratch import scratch_scope
from transcribot.bot.services.stt import Transcriber
from transcribot.bot.services.transcoder import Transcoder


@dataclass
class PipelineDeps:
    """Collaborators a request needs; built once per process."""

    http: httpx.AsyncClient
    transcoder: Transcoder
    transcriber: Transcriber
    scratch_dir: Path
    max_message_length: int = TELEGRAM_MAX_MESSAGE_LENGTH


def transcribing_status(request: InboundRequest, transcriber: Transcriber) -> str:
    what = "audio" if request.kind.is_audio else "extracted audio"
    return f"Transcribing {what}... (using {transcriber.label})"


async def process_media(deps: PipelineDeps, client: ChatClient, request: InboundRequest) -> bool:
    """Run the whole pipeline for one request. Never raises; returns success."""

    logger = get_logger(message_id=request.message_id, kind=request.kind.value, user_id=request.user_id)
    logger.info("request_received", mime_type=request.mime_type, size=request.file_size)
    status = StatusNotification(client, request.chat_id, limit=deps.max_message_length)
    started = perf_counter()
    outcome = "error"

    with scratch_scope(deps.scratch_dir, request.message_id) as scratch:
        try:
            await status.start(f"Receiving your {request.kind.label}...")

            source = await download(client, deps.http, request, scratch, status)

            audio_path = source
            if request.kind.needs_extraction:
                audio_path = await deps.transcoder.extract_audio(source, scratch, status)

            await status.update(transcribing_status(request, deps.transcriber))
            try:
                with metrics.timer("stage_seconds", labels={"stage": "transcribe"}):
                    transcript = await deps.transcriber.transcribe(audio_path)
            finally:
                for path in deps.transcriber.side_outputs(audio_path):
                    scratch.add(path)

            parts = await status.deliver(transcript)
            outcome = "ok"
            logger.info("request_ok", parts=parts, chars=len(transcript))
        except PipelineError as exc:
            logger.error("request_failed", stage=exc.stage, error=str(exc), diagnostics=exc.diagnostics)
            await status.fail(request.kind, exc)
        except Exception as exc:
            logger.exception("request_crashed", error=str(exc))
            await status.fail(request.kind, exc)

    metrics.inc("requests_total", labels={"kind": request.kind.value, "outcome": outcome})
    metrics.observe("request_seconds", perf_counter() - started, labels={"kind": request.kind.value})
    return outcome == "ok"
