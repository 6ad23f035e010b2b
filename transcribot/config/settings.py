from __future__ import annotations

"""Application settings using Pydantic Settings.

Loads configuration from environment variables and optional .env file.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import AnyHttpUrl, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_int(raw: Any, default: int) -> int:
    try:
        return int(raw) if raw is not None else default
    except (TypeError, ValueError):
        return default


class SttSettings(BaseModel):
    # None means "decide from WHISPER_API_URL" in model_post_init
    mode: Optional[Literal["http", "cli"]] = None
    http_url: Optional[str] = None
    cli_binary: str = "whisper"
    model: str = "medium"
    # Empty string lets the engine detect the language
    language: str = "en"
    timeout_seconds: int = 600


class FfmpegSettings(BaseModel):
    binary: str = "ffmpeg"
    timeout_seconds: int = 300


class Settings(BaseSettings):
    """Top-level application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",  # allow flat extra env like WHISPER_API_URL
    )

    # Core
    telegram_bot_token: str
    authorized_users: str = ""

    # Runtime
    run_mode: Literal["polling", "webhook"] = "polling"
    webhook_secret: str | None = None
    public_base_url: AnyHttpUrl | None = None
    app_host: str = "0.0.0.0"
    app_port: int = 8080
    shutdown_grace_seconds: float = 30

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Pipeline
    scratch_dir: Path = Path("temp")
    download_timeout_seconds: int = 120
    max_message_length: int = 4096

    stt: SttSettings = Field(default_factory=SttSettings)
    ffmpeg: FfmpegSettings = Field(default_factory=FfmpegSettings)

    @field_validator("telegram_bot_token")
    @classmethod
    def _validate_token(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("TELEGRAM_BOT_TOKEN is not set")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in levels:
            raise ValueError("Invalid LOG_LEVEL")
        return v.upper()

    def _flat(self, name: str, default: Any) -> Any:
        """Read a flat variable from the process env, then from .env extras."""

        raw = os.getenv(name)
        if raw is None:
            raw = (self.model_extra or {}).get(name.lower())
        if raw is None:
            return default
        return str(raw).strip()

    def model_post_init(self, __context: dict[str, object]) -> None:  # type: ignore[override]
        """Map flat env vars into nested settings and check combinations."""

        stt = self.stt
        stt.http_url = self._flat("WHISPER_API_URL", stt.http_url) or None
        stt.cli_binary = self._flat("WHISPER_BINARY", stt.cli_binary) or stt.cli_binary
        stt.model = self._flat("WHISPER_MODEL", stt.model) or stt.model
        stt.language = self._flat("WHISPER_LANGUAGE", stt.language) or ""
        stt.timeout_seconds = _parse_int(self._flat("STT_TIMEOUT_SECONDS", None), stt.timeout_seconds)

        mode = self._flat("STT_MODE", stt.mode)
        if mode:
            mode = mode.lower()
            if mode not in {"http", "cli"}:
                raise ValueError("STT_MODE must be 'http' or 'cli'")
            stt.mode = mode
        else:
            stt.mode = "http" if stt.http_url else "cli"

        self.ffmpeg.binary = self._flat("FFMPEG_BINARY", self.ffmpeg.binary) or self.ffmpeg.binary
        self.ffmpeg.timeout_seconds = _parse_int(
            self._flat("FFMPEG_TIMEOUT_SECONDS", None), self.ffmpeg.timeout_seconds
        )

        if stt.mode == "http" and not stt.http_url:
            raise ValueError("STT_MODE=http requires WHISPER_API_URL")
        if self.run_mode == "webhook" and not (self.webhook_secret and self.public_base_url):
            raise ValueError("RUN_MODE=webhook requires WEBHOOK_SECRET and PUBLIC_BASE_URL")

    @property
    def allowed_user_ids(self) -> frozenset[str]:
        from transcribot.bot.middlewares.access import parse_allowed_users

        return parse_allowed_users(self.authorized_users)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance."""

    return Settings()  # type: ignore[call-arg]
