from __future__ import annotations

import pytest

from transcribot.bot.services.scratch import ScratchFiles, ensure_scratch_dir, scratch_scope


def test_ensure_scratch_dir_creates_missing(tmp_path):
    target = tmp_path / "a" / "b"
    assert ensure_scratch_dir(target) == target
    assert target.is_dir()


def test_new_paths_are_unique_and_prefixed(scratch_dir):
    scratch = ScratchFiles(scratch_dir, 77)
    a = scratch.new_path(".oga")
    b = scratch.new_path(".oga")
    assert a != b
    assert a.name.startswith("77_") and a.suffix == ".oga"
    assert scratch.paths == [a, b]


def test_cleanup_removes_files_and_side_outputs(scratch_dir):
    keep = scratch_dir / "unrelated.txt"
    keep.write_text("x")
    with scratch_scope(scratch_dir, 1) as scratch:
        raw = scratch.new_path(".mp4")
        raw.write_bytes(b"video")
        converted = scratch.derived(raw, "_converted.mp3")
        converted.write_bytes(b"audio")
        for ext in (".txt", ".srt", ".json"):
            (scratch_dir / f"{converted.stem}{ext}").write_text("engine")
        (scratch_dir / f"{raw.stem}.vtt").write_text("engine")

    assert sorted(p.name for p in scratch_dir.iterdir()) == ["unrelated.txt"]


def test_cleanup_runs_when_body_raises(scratch_dir):
    with pytest.raises(RuntimeError):
        with scratch_scope(scratch_dir, 2) as scratch:
            scratch.new_path(".oga").write_bytes(b"partial")
            raise RuntimeError("download broke")
    assert list(scratch_dir.iterdir()) == []


def test_cleanup_of_missing_paths_is_a_noop(scratch_dir):
    scratch = ScratchFiles(scratch_dir, 3)
    scratch.new_path(".oga")
    scratch.cleanup()
    scratch.cleanup()
    assert list(scratch_dir.iterdir()) == []
