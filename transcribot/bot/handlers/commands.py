from __future__ import annotations

"""Command handlers: /start, /help, plus a hint for plain text."""

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message


commands_router = Router(name="commands")

WELCOME_TEXT = "Welcome! Send me a voice note, audio, or video file, and I will transcribe it for you."
HELP_TEXT = "Send me a voice note, audio, or video file, and I will transcribe it for you!"


@commands_router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    await message.answer(WELCOME_TEXT)


@commands_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@commands_router.message(F.text)
async def on_text(message: Message) -> None:
    await message.answer(HELP_TEXT)
