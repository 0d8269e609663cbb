#!/usr/bin/env python3
"""Run the activity monitor against a live hub.

Reads ``HUBALERT_*`` settings from the environment, polls the Hubitat
Maker API (and the MQTT channel when ``HUBALERT_MQTT_HOST`` is set) and
plays alerts on the default output device.

Starting the script counts as the user's enable action; pass
``--muted`` to watch transitions without sound.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from hubalert import ActivityMonitor, AlertConfig  # noqa: E402
from hubalert.exceptions import HubAlertConfigError  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sensor transition alerts for a Hubitat hub.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--summary-seconds",
        type=int,
        default=30,
        help="Print an activity summary every N seconds.",
    )
    parser.add_argument(
        "--muted",
        action="store_true",
        help="Track transitions without playing alerts.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


async def _run(config: AlertConfig, args: argparse.Namespace) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + args.duration if args.duration > 0 else None

    async with ActivityMonitor(config) as monitor:
        if not args.muted and not monitor.enable_alerts():
            print("[monitor] No audio output available; running muted", file=sys.stderr)

        while deadline is None or loop.time() < deadline:
            await asyncio.sleep(max(1, args.summary_seconds))
            summary = monitor.summary()
            print(f"[monitor] motion active: {summary.motion_active}  doors open: {summary.door_open}")


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = AlertConfig.from_env()
    except HubAlertConfigError as exc:
        print(f"[monitor] {exc}", file=sys.stderr)
        return 2

    if not config.hubitat_configured and not config.mqtt_enabled:
        print(
            "[monitor] Set HUBALERT_HUBITAT_HOST/APP_ID/ACCESS_TOKEN or HUBALERT_MQTT_HOST",
            file=sys.stderr,
        )
        return 2

    try:
        asyncio.run(_run(config, args))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
