from __future__ import annotations

"""Pydantic models describing an inbound media request."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AttachmentKind(str, Enum):
    voice = "voice"
    video = "video"
    video_note = "video_note"
    audio = "audio"
    audio_document = "audio_document"
    video_document = "video_document"
    unsupported = "unsupported"

    @property
    def needs_extraction(self) -> bool:
        """Video-shaped kinds must be demuxed to audio before transcription."""

        return self in {AttachmentKind.video, AttachmentKind.video_note, AttachmentKind.video_document}

    @property
    def is_audio(self) -> bool:
        return self in {AttachmentKind.voice, AttachmentKind.audio, AttachmentKind.audio_document}

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class InboundRequest(BaseModel):
    """One chat message carrying a single attachment."""

    model_config = ConfigDict(frozen=True)

    chat_id: int
    message_id: int
    user_id: Optional[int] = None
    kind: AttachmentKind
    file_id: str
    mime_type: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
