from __future__ import annotations

"""Per-request scratch files and their unconditional cleanup."""

import secrets
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from transcribot.bot.services.logging import get_logger


# Files a CLI speech-to-text engine may write next to its main output
SIDE_OUTPUT_EXTENSIONS = (".txt", ".vtt", ".srt", ".tsv", ".json")


def ensure_scratch_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def side_outputs(directory: Path, stem: str) -> list[Path]:
    return [directory / f"{stem}{ext}" for ext in SIDE_OUTPUT_EXTENSIONS]


def remove_quietly(path: Path) -> bool:
    """Delete a file; missing files are a no-op and errors are only logged."""

    try:
        path.unlink(missing_ok=True)
        return True
    except OSError as exc:
        get_logger().error("scratch_delete_failed", path=str(path), error=str(exc))
        return False


class ScratchFiles:
    """Registry of the files one request created under the scratch dir."""

    def __init__(self, directory: Path, message_id: int | str) -> None:
        self.directory = directory
        self.message_id = message_id
        self._paths: list[Path] = []

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def add(self, path: Path) -> Path:
        if path not in self._paths:
            self._paths.append(path)
        return path

    def new_path(self, suffix: str) -> Path:
        """Reserve `<message_id>_<random hex><suffix>`; unique across requests."""

        name = f"{self.message_id}_{secrets.token_hex(4)}{suffix}"
        return self.add(self.directory / name)

    def derived(self, source: Path, tail: str) -> Path:
        """Reserve a sibling of `source`, e.g. `<stem>_converted.mp3`."""

        return self.add(self.directory / f"{source.stem}{tail}")

    def cleanup(self) -> None:
        targets: list[Path] = []
        for path in self._paths:
            targets.append(path)
            targets.extend(side_outputs(path.parent, path.stem))
        seen: set[Path] = set()
        for target in targets:
            if target in seen:
                continue
            seen.add(target)
            if target.exists():
                get_logger().debug("scratch_delete", path=str(target), message_id=self.message_id)
            remove_quietly(target)
        self._paths.clear()


@contextmanager
def scratch_scope(directory: Path, message_id: int | str) -> Iterator[ScratchFiles]:
    """Provide a ScratchFiles registry that is always cleaned up on exit."""

    scratch = ScratchFiles(directory, message_id)
    try:
        yield scratch
    finally:
        scratch.cleanup()
