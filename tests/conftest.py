from __future__ import annotations

from dataclasses import dataclass, field

import pytest


BOT_TOKEN = "123456:SECRET-TOKEN"


@dataclass
class FakeChatClient:
    """Records every platform call instead of talking to Telegram."""

    calls: list[tuple] = field(default_factory=list)
    next_id: int = 1000
    file_url_error: Exception | None = None

    async def send_text(self, chat_id: int, text: str) -> int:
        self.next_id += 1
        self.calls.append(("send", chat_id, self.next_id, text))
        return self.next_id

    async def edit_text(self, chat_id: int, message_id: int, text: str) -> None:
        self.calls.append(("edit", chat_id, message_id, text))

    async def file_url(self, file_id: str) -> str:
        if self.file_url_error is not None:
            raise self.file_url_error
        self.calls.append(("file_url", file_id))
        return f"https://api.telegram.org/file/bot{BOT_TOKEN}/{file_id}"

    @property
    def texts(self) -> list[str]:
        return [c[-1] for c in self.calls if c[0] in {"send", "edit"}]

    @property
    def final_text(self) -> str:
        return self.texts[-1]


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def scratch_dir(tmp_path):
    d = tmp_path / "scratch"
    d.mkdir()
    return d
