"""Command-line entry point: ``livewatch`` / ``python -m livewatch``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from livewatch.app import LiveWatchApp
from livewatch.config import WatchConfig
from livewatch.exceptions import ConfigError

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Post a webhook message when Twitch channels go live")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Read environment variables from this file (default: ./.env if present).",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single reconciliation cycle and exit.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Force DEBUG logging.")
    return parser.parse_args(argv)


async def _run(config: WatchConfig, *, once: bool) -> int:
    async with LiveWatchApp(config) as app:
        if once:
            return 0 if await app.run_once() else 1
        app.install_signal_handlers()
        await app.run()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.env_file is not None:
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    try:
        config = WatchConfig.from_env().validate()
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 1

    level = logging.DEBUG if args.verbose else _LOG_LEVELS.get(config.log_level.lower(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    Path(config.data_dir).mkdir(parents=True, exist_ok=True)
    return asyncio.run(_run(config, once=args.once))


if __name__ == "__main__":
    raise SystemExit(main())
