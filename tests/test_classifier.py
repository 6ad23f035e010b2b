from __future__ import annotations

from datetime import datetime, timezone

import pytest
from aiogram.types import Audio, Chat, Document, Message, User, Video, VideoNote, Voice

from transcribot.bot.schemas.media import AttachmentKind, InboundRequest
from transcribot.bot.services.classifier import (
    classify,
    classify_document_mime,
    scratch_suffix,
    unsupported_reply,
)


def _message(**media) -> Message:
    return Message(
        message_id=42,
        date=datetime.now(timezone.utc),
        chat=Chat(id=7, type="private"),
        from_user=User(id=111, is_bot=False, first_name="Test"),
        **media,
    )


def test_voice_is_audio_shaped():
    req = classify(_message(voice=Voice(file_id="v1", file_unique_id="uv1", duration=3, mime_type="audio/ogg")))
    assert req is not None
    assert req.kind is AttachmentKind.voice
    assert not req.kind.needs_extraction
    assert (req.chat_id, req.message_id, req.user_id, req.file_id) == (7, 42, 111, "v1")


def test_video_and_video_note_need_extraction():
    video = classify(
        _message(video=Video(file_id="x", file_unique_id="ux", width=640, height=480, duration=5, mime_type="video/mp4"))
    )
    note = classify(_message(video_note=VideoNote(file_id="n", file_unique_id="un", length=240, duration=4)))
    assert video.kind is AttachmentKind.video and video.kind.needs_extraction
    assert note.kind is AttachmentKind.video_note and note.kind.needs_extraction


def test_audio_keeps_file_name_and_mime():
    req = classify(
        _message(audio=Audio(file_id="a", file_unique_id="ua", duration=60, mime_type="audio/mpeg", file_name="talk.mp3"))
    )
    assert req.kind is AttachmentKind.audio
    assert req.mime_type == "audio/mpeg"
    assert req.file_name == "talk.mp3"


@pytest.mark.parametrize(
    "mime,kind",
    [
        ("audio/x-m4a", AttachmentKind.audio_document),
        ("audio/flac", AttachmentKind.audio_document),
        ("video/quicktime", AttachmentKind.video_document),
        ("video/x-matroska", AttachmentKind.video_document),
        ("application/pdf", AttachmentKind.unsupported),
        (None, AttachmentKind.unsupported),
    ],
)
def test_document_mime_lookup(mime, kind):
    assert classify_document_mime(mime) is kind


def test_document_message_classification():
    req = classify(
        _message(document=Document(file_id="d", file_unique_id="ud", file_name="clip.mov", mime_type="video/quicktime"))
    )
    assert req.kind is AttachmentKind.video_document
    assert req.kind.needs_extraction


def test_plain_text_message_has_no_attachment():
    assert classify(_message(text="hello")) is None


def test_unsupported_reply_names_mime():
    assert "(application/pdf)" in unsupported_reply("application/pdf")
    assert "(application/octet-stream)" in unsupported_reply(None)


def _req(kind, mime=None, name=None) -> InboundRequest:
    return InboundRequest(chat_id=1, message_id=2, kind=kind, file_id="f", mime_type=mime, file_name=name)


@pytest.mark.parametrize(
    "request_,suffix",
    [
        (_req(AttachmentKind.voice, "audio/ogg"), ".oga"),
        (_req(AttachmentKind.video_note), ".mp4"),
        (_req(AttachmentKind.video, "video/webm"), ".webm"),
        (_req(AttachmentKind.video), ".mp4"),
        (_req(AttachmentKind.audio, "audio/x-m4a"), ".m4a"),
        (_req(AttachmentKind.audio), ".mp3"),
        (_req(AttachmentKind.audio_document, "audio/flac", "Song Name.FLAC"), ".flac"),
        (_req(AttachmentKind.video_document, "video/x-unknown-thing", "noext"), ".dat"),
    ],
)
def test_scratch_suffix(request_, suffix):
    assert scratch_suffix(request_) == suffix


def test_kind_labels():
    assert AttachmentKind.video_note.label == "video note"
    assert AttachmentKind.audio_document.label == "audio document"
