from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from transcribot.bot.services import stt as stt_mod
from transcribot.bot.services.errors import TranscriptionError
from transcribot.bot.services.process import ProcessResult
from transcribot.bot.services.stt import (
    UNPARSEABLE_TRANSCRIPT,
    HttpTranscriber,
    WhisperCliTranscriber,
    build_transcriber,
    clarify_cli_failure,
)
from transcribot.config.settings import SttSettings


URL = "http://whisper-api:9000/asr"


def _http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def audio(tmp_path) -> Path:
    path = tmp_path / "5_abcd1234.oga"
    path.write_bytes(b"OggS fake audio")
    return path


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"text": " hello "}),
        httpx.Response(200, json={"result": "hello"}),
        httpx.Response(200, json="hello"),
        httpx.Response(200, text="hello\n"),
    ],
)
async def test_http_shapes(audio, response):
    async with _http(lambda request: response) as client:
        transcriber = HttpTranscriber(URL, client=client)
        assert await transcriber.transcribe(audio) == "hello"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["42", "null", "true", "[1]", '{"text": "raw"}'])
async def test_http_plain_text_that_looks_like_json_is_the_transcript(audio, body):
    response = httpx.Response(200, text=body, headers={"content-type": "text/plain"})
    async with _http(lambda request: response) as client:
        assert await HttpTranscriber(URL, client=client).transcribe(audio) == body


@pytest.mark.asyncio
async def test_http_timeout_is_a_failure(audio):
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={"text": "late"})

    async with _http(handler) as client:
        transcriber = HttpTranscriber(URL, timeout_seconds=0.1, client=client)
        with pytest.raises(TranscriptionError, match="timed out"):
            await transcriber.transcribe(audio)


@pytest.mark.asyncio
async def test_http_uploads_single_audio_file_field(audio):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = request.read()
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json={"text": "ok"})

    async with _http(handler) as client:
        await HttpTranscriber(URL, language="de", client=client).transcribe(audio)

    assert b'name="audio_file"' in captured["body"]
    assert b'filename="5_abcd1234.oga"' in captured["body"]
    assert captured["params"]["language"] == "de"
    assert captured["params"]["output"] == "json"


@pytest.mark.asyncio
async def test_http_unparseable_is_reported_not_raised(audio):
    async with _http(lambda r: httpx.Response(200, json={"segments": [1, 2]})) as client:
        assert await HttpTranscriber(URL, client=client).transcribe(audio) == UNPARSEABLE_TRANSCRIPT


@pytest.mark.asyncio
async def test_http_error_status_raises(audio):
    async with _http(lambda r: httpx.Response(500, text="CUDA exploded")) as client:
        with pytest.raises(TranscriptionError, match="HTTP 500"):
            await HttpTranscriber(URL, client=client).transcribe(audio)


@pytest.mark.asyncio
async def test_http_unreachable_raises(audio):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _http(handler) as client:
        with pytest.raises(TranscriptionError, match="unreachable"):
            await HttpTranscriber(URL, client=client).transcribe(audio)


def _cli(tmp_path) -> WhisperCliTranscriber:
    return WhisperCliTranscriber(tmp_path, model="base", language="en", timeout_seconds=60)


def test_cli_command_vector(tmp_path, audio):
    argv = _cli(tmp_path).command(audio)
    assert argv[:2] == ["whisper", str(audio)]
    assert argv[argv.index("--output_dir") + 1] == str(tmp_path)
    assert argv[argv.index("--output_format") + 1] == "txt"
    assert argv[argv.index("--model") + 1] == "base"


@pytest.mark.asyncio
async def test_cli_reads_and_strips_txt_then_removes_side_outputs(monkeypatch, tmp_path, audio):
    async def fake_run(argv, *, timeout):
        out_dir = Path(argv[argv.index("--output_dir") + 1])
        (out_dir / f"{audio.stem}.txt").write_text("  hello world \n", encoding="utf-8")
        (out_dir / f"{audio.stem}.vtt").write_text("WEBVTT")
        (out_dir / f"{audio.stem}.json").write_text(json.dumps({"text": "x"}))
        return ProcessResult(0, "", "progress...")

    monkeypatch.setattr(stt_mod, "run_process", fake_run)

    assert await _cli(tmp_path).transcribe(audio) == "hello world"
    leftovers = sorted(p.name for p in tmp_path.iterdir())
    assert leftovers == [audio.name]


@pytest.mark.asyncio
async def test_cli_missing_output_is_terminal(monkeypatch, tmp_path, audio):
    async def fake_run(argv, *, timeout):
        return ProcessResult(0, "", "")

    monkeypatch.setattr(stt_mod, "run_process", fake_run)
    with pytest.raises(TranscriptionError, match="Output file not generated"):
        await _cli(tmp_path).transcribe(audio)


@pytest.mark.asyncio
async def test_cli_failure_is_clarified_and_cleans_up(monkeypatch, tmp_path, audio):
    async def fake_run(argv, *, timeout):
        (tmp_path / f"{audio.stem}.srt").write_text("partial")
        return ProcessResult(1, "", "Traceback...\ntorch.cuda.OutOfMemoryError: CUDA out of memory")

    monkeypatch.setattr(stt_mod, "run_process", fake_run)
    with pytest.raises(TranscriptionError, match="Out of memory"):
        await _cli(tmp_path).transcribe(audio)
    assert not (tmp_path / f"{audio.stem}.srt").exists()


def test_clarify_cli_failure():
    assert "Could not find input file" in clarify_cli_failure("FileNotFoundError: [Errno 2] x.oga")
    assert clarify_cli_failure("RuntimeError: weird") == "Transcription failed: RuntimeError: weird"


def test_build_transcriber_picks_strategy(tmp_path):
    http = build_transcriber(SttSettings(mode="http", http_url=URL), scratch_dir=tmp_path)
    cli = build_transcriber(SttSettings(mode="cli", model="small"), scratch_dir=tmp_path)
    assert isinstance(http, HttpTranscriber)
    assert isinstance(cli, WhisperCliTranscriber)
    assert cli.output_dir == tmp_path
    assert cli.model == "small"
