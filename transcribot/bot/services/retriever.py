from __future__ import annotations

"""Download a Telegram attachment into a scratch file."""

import os
from pathlib import Path

import httpx

from transcribot.bot.schemas.media import InboundRequest
from transcribot.bot.services.classifier import scratch_suffix
from transcribot.bot.services.errors import RetrievalError
from transcribot.bot.services.logging import get_logger
from transcribot.bot.services.metrics import metrics
from transcribot.bot.services.platform import ChatClient
from transcribot.bot.services.responder import StatusNotification
from transcribot.bot.services.scratch import ScratchFiles


CHUNK_SIZE = 1024 * 1024


async def download(
    client: ChatClient,
    http: httpx.AsyncClient,
    request: InboundRequest,
    scratch: ScratchFiles,
    status: StatusNotification,
) -> Path:
    """Stream the attachment to disk and return the fully flushed path.

    The path is registered with `scratch` before the first byte is written,
    so a partial file is still removed by cleanup.
    """

    logger = get_logger(message_id=request.message_id, kind=request.kind.value)
    try:
        url = await client.file_url(request.file_id)
    except Exception as exc:
        raise RetrievalError(f"Could not resolve file link: {exc}") from exc

    await status.update(f"Downloading {request.kind.label}...")

    target = scratch.new_path(scratch_suffix(request))
    logger.info("download_start", path=str(target), size=request.file_size)
    written = 0
    with metrics.timer("stage_seconds", labels={"stage": "download"}):
        try:
            async with http.stream("GET", url) as resp:
                resp.raise_for_status()
                # Save to disk in chunks
                with target.open("wb") as out:
                    async for chunk in resp.aiter_bytes(CHUNK_SIZE):
                        out.write(chunk)
                        written += len(chunk)
                    out.flush()
                    os.fsync(out.fileno())
        except httpx.HTTPStatusError as exc:
            raise RetrievalError(f"Download failed with HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise RetrievalError(f"Download failed: {exc}") from exc
        except OSError as exc:
            raise RetrievalError(f"Could not write download: {exc.strerror or exc}") from exc

    logger.info("download_ok", path=str(target), bytes=written)
    return target
