from __future__ import annotations

"""Recognized response shapes of an HTTP speech-to-text engine.

Engines in the whisper-asr-webservice family answer with either plain text
or a JSON object; which field carries the transcript depends on the engine
and the requested output. Every body is mapped onto exactly one variant of
`SttResponse`, with `Unparseable` for anything else.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field


class BareText(BaseModel):
    shape: Literal["bare"] = "bare"
    text: str


class TextField(BaseModel):
    shape: Literal["text"] = "text"
    text: str


class ResultField(BaseModel):
    shape: Literal["result"] = "result"
    result: str


class Unparseable(BaseModel):
    shape: Literal["unparseable"] = "unparseable"
    preview: str


SttResponse = Annotated[
    Union[BareText, TextField, ResultField, Unparseable],
    Field(discriminator="shape"),
]


def parse_stt_payload(raw: Any) -> SttResponse:
    """Classify a decoded response body (JSON value or plain text)."""

    if isinstance(raw, str):
        return BareText(text=raw)
    if isinstance(raw, dict):
        text = raw.get("text")
        if isinstance(text, str):
            return TextField(text=text)
        result = raw.get("result")
        if isinstance(result, str):
            return ResultField(result=result)
    return Unparseable(preview=repr(raw)[:200])


def transcript_of(response: SttResponse) -> Optional[str]:
    """Return the stripped transcript, or None for unparseable bodies."""

    if isinstance(response, (BareText, TextField)):
        return response.text.strip()
    if isinstance(response, ResultField):
        return response.result.strip()
    return None
