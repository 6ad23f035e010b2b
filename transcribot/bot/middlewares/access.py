from __future__ import annotations

"""Allow-list gate executed before every message handler."""

from typing import Any, Awaitable, Callable, Dict, Iterable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from transcribot.bot.services.logging import get_logger
from transcribot.bot.services.metrics import metrics


DENIAL_TEXT = "Sorry, you are not authorized to use this bot."


def parse_allowed_users(raw: str | Iterable[str] | None) -> frozenset[str]:
    """Split a comma-separated id list, dropping blanks."""

    if raw is None:
        return frozenset()
    parts = raw.split(",") if isinstance(raw, str) else raw
    return frozenset(p.strip() for p in parts if p and p.strip())


def is_authorized(user_id: int | str | None, allowed: frozenset[str]) -> bool:
    """Empty allow-list admits everyone; otherwise the id must match verbatim."""

    if not allowed:
        return True
    if user_id is None:
        return False
    return str(user_id) in allowed


class AccessMiddleware(BaseMiddleware):
    def __init__(self, allowed: frozenset[str]) -> None:
        self.allowed = allowed

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user = getattr(event, "from_user", None)
        user_id = user.id if user is not None else None
        if is_authorized(user_id, self.allowed):
            return await handler(event, data)

        get_logger().warning("unauthorized_access", user_id=user_id)
        metrics.inc("denied_total")
        await event.answer(DENIAL_TEXT)  # type: ignore[attr-defined]
        return None
