from __future__ import annotations

"""Speech-to-text strategies: an HTTP ASR service or the local whisper CLI.

Both bindings take a path to an audio file that is ready for transcription
and return the stripped transcript. An empty transcript is a valid result.
"""

import asyncio
import mimetypes
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import httpx

from transcribot.bot.schemas.stt_io import Unparseable, parse_stt_payload, transcript_of
from transcribot.bot.services.errors import TranscriptionError
from transcribot.bot.services.logging import get_logger
from transcribot.bot.services.process import ProcessTimeout, run_process
from transcribot.bot.services.scratch import remove_quietly, side_outputs
from transcribot.config.settings import SttSettings


UNPARSEABLE_TRANSCRIPT = "[Unable to parse transcription response]"


class Transcriber(ABC):
    """Abstract base class for speech-to-text backends."""

    label: str = "speech-to-text"

    @abstractmethod
    async def transcribe(self, audio_path: Path) -> str:
        """Transcribe an audio file.

        Raises:
            TranscriptionError: If the engine fails or its output is missing.
        """

    def side_outputs(self, audio_path: Path) -> list[Path]:
        """Files the engine may leave behind for `audio_path`."""

        return []

    async def aclose(self) -> None:
        return None


class HttpTranscriber(Transcriber):
    """Multipart upload to a whisper-asr-webservice style endpoint."""

    label = "whisper-asr-webservice"

    def __init__(
        self,
        url: str,
        *,
        language: Optional[str] = None,
        timeout_seconds: float = 600,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.language = language or None
        self.timeout_seconds = timeout_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    def _params(self) -> dict[str, str]:
        params = {"task": "transcribe", "output": "json"}
        if self.language:
            params["language"] = self.language
        return params

    async def _post(self, audio_path: Path) -> httpx.Response:
        content_type = mimetypes.guess_type(audio_path.name)[0] or "application/octet-stream"
        with audio_path.open("rb") as fh:
            files = {"audio_file": (audio_path.name, fh, content_type)}
            resp = await self._client.post(
                self.url,
                params=self._params(),
                files=files,
                timeout=httpx.Timeout(self.timeout_seconds),
            )
        resp.raise_for_status()
        return resp

    async def transcribe(self, audio_path: Path) -> str:
        logger = get_logger(engine="http", path=audio_path.name)
        logger.info("stt_request_start")
        try:
            resp = await asyncio.wait_for(self._post(audio_path), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise TranscriptionError(
                f"Transcription timed out after {self.timeout_seconds:g} seconds"
            ) from exc
        except httpx.HTTPStatusError as exc:
            preview = exc.response.text[:200]
            logger.error("stt_http_status", status=exc.response.status_code, preview=preview)
            raise TranscriptionError(
                f"Transcription service returned HTTP {exc.response.status_code}", diagnostics=preview
            ) from exc
        except httpx.HTTPError as exc:
            raise TranscriptionError(f"Transcription service unreachable: {exc}") from exc

        # plain-text bodies such as "42" or "[1]" are transcripts, not JSON
        raw: Any = resp.text
        content_type = resp.headers.get("content-type", "").lower()
        if content_type.startswith("application/json"):
            try:
                raw = resp.json()
            except ValueError:
                logger.warning("stt_bad_json", preview=resp.text[:200])

        shape = parse_stt_payload(raw)
        if isinstance(shape, Unparseable):
            logger.warning("stt_unparseable", preview=shape.preview)
            return UNPARSEABLE_TRANSCRIPT
        transcript = transcript_of(shape) or ""
        logger.info("stt_request_ok", shape=shape.shape, chars=len(transcript))
        return transcript

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def clarify_cli_failure(diagnostics: str) -> str:
    """Map well-known whisper tracebacks onto a readable message."""

    if "FileNotFoundError" in diagnostics:
        return f"Transcription failed: Could not find input file for whisper. {diagnostics}"
    if "OutOfMemoryError" in diagnostics or "out of memory" in diagnostics.lower():
        return f"Transcription failed: Out of memory. Try a smaller model or shorter audio. {diagnostics}"
    return f"Transcription failed: {diagnostics}"


class WhisperCliTranscriber(Transcriber):
    """Run openai-whisper locally; it writes `<stem>.txt` into `output_dir`."""

    label = "openai-whisper"

    def __init__(
        self,
        output_dir: Path,
        *,
        binary: str = "whisper",
        model: str = "medium",
        language: Optional[str] = "en",
        timeout_seconds: float = 600,
    ) -> None:
        self.output_dir = output_dir
        self.binary = binary
        self.model = model
        self.language = language or None
        self.timeout_seconds = timeout_seconds

    def command(self, audio_path: Path) -> list[str]:
        argv = [self.binary, str(audio_path), "--model", self.model]
        if self.language:
            argv += ["--language", self.language]
        argv += [
            "--output_dir", str(self.output_dir),
            "--output_format", "txt",
            "--fp16", "False",
        ]
        return argv

    def side_outputs(self, audio_path: Path) -> list[Path]:
        return side_outputs(self.output_dir, audio_path.stem)

    async def transcribe(self, audio_path: Path) -> str:
        output_txt = self.output_dir / f"{audio_path.stem}.txt"
        argv = self.command(audio_path)
        logger = get_logger(engine="cli", path=audio_path.name)
        logger.info("whisper_start", argv=argv)
        try:
            try:
                result = await run_process(argv, timeout=self.timeout_seconds)
            except FileNotFoundError as exc:
                raise TranscriptionError(f"Transcription failed: {self.binary} not found") from exc
            except ProcessTimeout as exc:
                raise TranscriptionError(f"Transcription failed: {exc}") from exc

            if not result.ok:
                diagnostics = result.diagnostics()
                logger.error("whisper_failed", returncode=result.returncode, stderr=diagnostics)
                raise TranscriptionError(clarify_cli_failure(diagnostics), diagnostics=diagnostics)

            if result.stderr:
                logger.debug("whisper_stderr", stderr=result.diagnostics())
            if not output_txt.exists():
                logger.error("whisper_output_missing", path=str(output_txt))
                raise TranscriptionError("Transcription failed: Output file not generated.")

            transcript = output_txt.read_text(encoding="utf-8").strip()
            if not transcript:
                logger.warning("whisper_empty_transcript")
            logger.info("whisper_ok", chars=len(transcript))
            return transcript
        finally:
            for path in self.side_outputs(audio_path):
                remove_quietly(path)


def build_transcriber(
    settings: SttSettings,
    *,
    scratch_dir: Path,
    client: Optional[httpx.AsyncClient] = None,
) -> Transcriber:
    if settings.mode == "http":
        if not settings.http_url:
            raise ValueError("HTTP transcription requires WHISPER_API_URL")
        return HttpTranscriber(
            settings.http_url,
            language=settings.language,
            timeout_seconds=settings.timeout_seconds,
            client=client,
        )
    return WhisperCliTranscriber(
        scratch_dir,
        binary=settings.cli_binary,
        model=settings.model,
        language=settings.language,
        timeout_seconds=settings.timeout_seconds,
    )
