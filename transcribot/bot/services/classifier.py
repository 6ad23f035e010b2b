from __future__ import annotations

"""Decide which kind of attachment a message carries."""

import mimetypes
import re
from pathlib import PurePath
from typing import Any, Optional

from transcribot.bot.schemas.media import AttachmentKind, InboundRequest


# Types the whisper CLI accepts through its ffmpeg backend
AUDIO_MIME_TYPES = frozenset(
    {
        "audio/ogg", "audio/vorbis",
        "audio/mpeg", "audio/mp3",
        "audio/wav", "audio/x-wav", "audio/wave", "audio/x-pn-wav",
        "audio/aac",
        "audio/flac", "audio/x-flac",
        "audio/opus",
        "audio/mp4", "audio/x-m4a",
        "audio/amr",
        "audio/webm",
    }
)

VIDEO_MIME_TYPES = frozenset(
    {
        "video/mp4",
        "video/mpeg",
        "video/quicktime",
        "video/webm",
        "video/x-msvideo",
        "video/x-matroska",
        "video/x-flv",
        "video/3gpp",
        "video/x-ms-wmv",
    }
)

DEFAULT_DOCUMENT_MIME = "application/octet-stream"

_SUFFIX_RE = re.compile(r"[^a-z0-9]")


def classify_document_mime(mime_type: Optional[str]) -> AttachmentKind:
    mime = (mime_type or DEFAULT_DOCUMENT_MIME).lower()
    if mime in AUDIO_MIME_TYPES:
        return AttachmentKind.audio_document
    if mime in VIDEO_MIME_TYPES:
        return AttachmentKind.video_document
    return AttachmentKind.unsupported


def classify(message: Any) -> Optional[InboundRequest]:
    """Build an InboundRequest from an aiogram Message.

    Returns None when the message has no media attachment at all.
    """

    kind: AttachmentKind
    if message.voice:
        media, kind = message.voice, AttachmentKind.voice
    elif message.video:
        media, kind = message.video, AttachmentKind.video
    elif message.video_note:
        media, kind = message.video_note, AttachmentKind.video_note
    elif message.audio:
        media, kind = message.audio, AttachmentKind.audio
    elif message.document:
        media = message.document
        kind = classify_document_mime(media.mime_type)
    else:
        return None

    user = message.from_user
    return InboundRequest(
        chat_id=message.chat.id,
        message_id=message.message_id,
        user_id=user.id if user else None,
        kind=kind,
        file_id=media.file_id,
        mime_type=getattr(media, "mime_type", None),
        file_name=getattr(media, "file_name", None),
        file_size=getattr(media, "file_size", None),
    )


def unsupported_reply(mime_type: Optional[str]) -> str:
    return (
        "Sorry, I can only transcribe common audio and video file types. "
        f"The received file type ({mime_type or DEFAULT_DOCUMENT_MIME}) might not be supported directly."
    )


def _clean_suffix(raw: str) -> str:
    return _SUFFIX_RE.sub("", raw.lower().lstrip("."))


def _mime_subtype(mime_type: Optional[str]) -> str:
    if not mime_type or "/" not in mime_type:
        return ""
    subtype = mime_type.split("/", 1)[1].lower()
    if subtype.startswith("x-"):
        subtype = subtype[2:]
    return _clean_suffix(subtype)


def scratch_suffix(request: InboundRequest) -> str:
    """Extension of the downloaded scratch file, dot included."""

    kind = request.kind
    if kind is AttachmentKind.voice:
        return ".oga"
    if kind is AttachmentKind.video_note:
        return ".mp4"
    if kind is AttachmentKind.video:
        return "." + (_mime_subtype(request.mime_type) or "mp4")
    if kind is AttachmentKind.audio:
        return "." + (_mime_subtype(request.mime_type) or "mp3")

    # documents: original extension, then a MIME guess
    if request.file_name:
        ext = _clean_suffix(PurePath(request.file_name).suffix)
        if ext:
            return "." + ext
    if request.mime_type:
        guessed = mimetypes.guess_extension(request.mime_type)
        if guessed:
            ext = _clean_suffix(guessed)
            if ext:
                return "." + ext
    return ".dat"
