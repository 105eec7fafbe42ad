#!/usr/bin/env python3
"""Render a message template with sample data and print the payload.

Useful while editing ``templates/message_template.json``: it shows exactly
which fields survive pruning for a given context, and can optionally POST
the result to ``DISCORD_WEBHOOK_URL`` to see it in the channel.

Examples::

    python scripts/preview_template.py
    python scripts/preview_template.py --set thumbnail_url= --set game_name=
    python scripts/preview_template.py --context ctx.json --send
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402
from dotenv import load_dotenv  # noqa: E402

from livewatch._transport import AiohttpTransport  # noqa: E402
from livewatch.dispatcher import NotificationDispatcher  # noqa: E402
from livewatch.exceptions import LiveWatchError  # noqa: E402
from livewatch.template import load_template, render_payload  # noqa: E402

_SAMPLE_CONTEXT: dict[str, str] = {
    "mention_prefix": "@everyone",
    "login": "examplechannel",
    "display_name": "ExampleChannel",
    "url": "https://twitch.tv/examplechannel",
    "title": "Speedrunning until the wheels fall off",
    "game_name": "Celeste",
    "started_at": "2026-01-01T18:00:00Z",
    "thumbnail_url": "https://static-cdn.jtvnw.net/previews-ttv/live_user_examplechannel-1280x720.jpg?t=0",
    "profile_image_url": "https://static-cdn.jtvnw.net/jtv_user_pictures/example-profile_image-300x300.png",
    "now_iso": "2026-01-01T18:00:05.000Z",
}


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Preview a livewatch message template")
    parser.add_argument(
        "--template",
        type=Path,
        default=None,
        help="Template file (default: $TEMPLATE_PATH or templates/message_template.json).",
    )
    parser.add_argument("--context", type=Path, default=None, help="JSON file with context overrides.")
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override one context value; an empty value clears it.",
    )
    parser.add_argument("--send", action="store_true", help="POST the payload to DISCORD_WEBHOOK_URL.")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args()


def _build_context(args: argparse.Namespace) -> dict[str, Any]:
    context: dict[str, Any] = dict(_SAMPLE_CONTEXT)
    if args.context is not None:
        overrides = json.loads(args.context.read_text(encoding="utf-8"))
        if not isinstance(overrides, dict):
            raise SystemExit("--context must contain a JSON object")
        context.update(overrides)
    for item in args.set:
        key, sep, value = item.partition("=")
        if not sep:
            raise SystemExit(f"--set expects KEY=VALUE, got {item!r}")
        context[key.strip()] = value
    return context


async def _send(payload: dict[str, Any]) -> None:
    webhook_url = os.environ.get("DISCORD_WEBHOOK_URL")
    if not webhook_url:
        raise SystemExit("DISCORD_WEBHOOK_URL is not set")
    async with aiohttp.ClientSession() as http:
        dispatcher = NotificationDispatcher(webhook_url, AiohttpTransport(http))
        await dispatcher.dispatch(payload)


def main() -> int:
    args = _parse_args()
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    template_path = args.template or Path(os.environ.get("TEMPLATE_PATH", _repo / "templates" / "message_template.json"))
    context = _build_context(args)

    try:
        payload = render_payload(load_template(template_path), context)
    except LiveWatchError as exc:
        print(f"Render failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=2, ensure_ascii=False))

    if args.send:
        try:
            asyncio.run(_send(payload))
        except LiveWatchError as exc:
            print(f"Send failed: {exc}", file=sys.stderr)
            return 2
        print("Sent.", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
