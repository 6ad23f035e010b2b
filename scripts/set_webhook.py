from __future__ import annotations

"""Register the bot's webhook URL with Telegram.

Usage:
  python scripts/set_webhook.py          # point Telegram at /tg/webhook
  python scripts/set_webhook.py --delete # go back to polling

Auto-loads `.env` from the project root (or parent dirs) using python-dotenv.

Requires env TELEGRAM_BOT_TOKEN, and for registration PUBLIC_BASE_URL and
WEBHOOK_SECRET.
"""

import os
import sys

import httpx
from dotenv import find_dotenv, load_dotenv


def main(argv: list[str]) -> int:
    load_dotenv(find_dotenv(), override=False)

    token = os.environ.get("TELEGRAM_BOT_TOKEN")
    if not token:
        print("Please set TELEGRAM_BOT_TOKEN", file=sys.stderr)
        return 1
    api = f"https://api.telegram.org/bot{token}"

    if "--delete" in argv:
        resp = httpx.post(f"{api}/deleteWebhook")
        print(resp.status_code, resp.text)
        return 0 if resp.is_success else 1

    base = os.environ.get("PUBLIC_BASE_URL")
    secret = os.environ.get("WEBHOOK_SECRET")
    if not base or not secret:
        print("Please set PUBLIC_BASE_URL and WEBHOOK_SECRET", file=sys.stderr)
        return 1
    url = f"{base.rstrip('/')}/tg/webhook?secret={secret}"
    resp = httpx.post(f"{api}/setWebhook", json={"url": url, "allowed_updates": ["message"]})
    print(resp.status_code, resp.text)
    return 0 if resp.is_success else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
