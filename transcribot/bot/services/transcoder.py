from __future__ import annotations

"""Extract a mono 16 kHz audio track with ffmpeg."""

from pathlib import Path

from transcribot.bot.services.errors import TranscodingError
from transcribot.bot.services.logging import get_logger
from transcribot.bot.services.metrics import metrics
from transcribot.bot.services.process import ProcessTimeout, run_process
from transcribot.bot.services.responder import StatusNotification
from transcribot.bot.services.scratch import ScratchFiles, remove_quietly


# Opus sources go to PCM WAV; everything else to MP3
WAV_ARGS = ("-vn", "-acodec", "pcm_s16le", "-ar", "16000", "-ac", "1")
MP3_ARGS = ("-vn", "-acodec", "libmp3lame", "-ab", "192k", "-ar", "16000", "-ac", "1")


def ffmpeg_command(binary: str, source: Path, target: Path) -> list[str]:
    codec_args = WAV_ARGS if target.suffix == ".wav" else MP3_ARGS
    return [binary, "-nostdin", "-hide_banner", "-y", "-i", str(source), *codec_args, str(target)]


def output_format(source: Path) -> str:
    return "wav" if source.suffix.lower() == ".opus" else "mp3"


class Transcoder:
    def __init__(self, binary: str = "ffmpeg", timeout_seconds: float = 300) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds

    async def extract_audio(
        self,
        source: Path,
        scratch: ScratchFiles,
        status: StatusNotification,
    ) -> Path:
        """Demux `source` into a new scratch audio file and return its path."""

        await status.update("Extracting audio...")
        target = scratch.derived(source, f"_converted.{output_format(source)}")
        argv = ffmpeg_command(self.binary, source, target)
        logger = get_logger(message_id=scratch.message_id)
        logger.info("ffmpeg_start", argv=argv)

        with metrics.timer("stage_seconds", labels={"stage": "transcode"}):
            try:
                result = await run_process(argv, timeout=self.timeout_seconds)
            except FileNotFoundError as exc:
                remove_quietly(target)
                raise TranscodingError(f"Failed to process audio: {self.binary} not found") from exc
            except ProcessTimeout as exc:
                remove_quietly(target)
                raise TranscodingError(f"Failed to process audio: {exc}") from exc

        if not result.ok:
            remove_quietly(target)
            diagnostics = result.diagnostics()
            logger.error("ffmpeg_failed", returncode=result.returncode, stderr=diagnostics)
            raise TranscodingError(
                f"Failed to process audio: ffmpeg exited with code {result.returncode}: {diagnostics}",
                diagnostics=diagnostics,
            )

        logger.info("ffmpeg_ok", path=str(target))
        return target
