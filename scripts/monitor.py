#!/usr/bin/env python3
"""Console dashboard for a local pydevmon session.

Prints one block per view the publisher emits until interrupted or until
``--count`` views were shown.

Usage::

    python scripts/monitor.py --count 5
    DEVMON_MQTT_MOTION_ENABLED=1 DEVMON_MQTT_HOST=broker.local python scripts/monitor.py
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

from pydevmon import DashboardView, MonitorConfig, MonitorSession  # noqa: E402


def _render(view: DashboardView) -> str:
    lines = [
        f"--- snapshot v{view.version} ---",
        f"Device   {view.identity.model_name} | {view.identity.os} | {view.identity.total_memory}",
        f"Battery  {view.power.level_text} ({view.power.charge_label})",
        (
            f"Network  connected={view.network.connected} wifi={view.network.wifi_enabled} "
            f"internet={view.network.internet_reachable} ssid={view.network.ssid} "
            f"signal={view.network.signal_text} ip={view.network.ip_address} type={view.network.network_type}"
        ),
        f"Storage  {view.storage.free_gib} GiB free of {view.storage.total_gib} GiB",
        f"Motion   x={view.motion.x} y={view.motion.y} z={view.motion.z}",
    ]
    for name in ("power", "network", "storage", "identity", "motion"):
        card = getattr(view, name)
        if card.detail:
            lines.append(f"  ! {name}: {card.status} ({card.detail})")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> None:
    overrides = {}
    if args.timeout is not None:
        overrides["fetch_timeout"] = args.timeout
    config = MonitorConfig.from_env(**overrides)

    async with MonitorSession.from_config(config) as session:
        report = session.start_report
        if report is not None and not report.ok:
            for domain, error in report.subscription_failures.items():
                print(f"warning: no live {domain} updates: {error}", file=sys.stderr)
        shown = 0
        async for view in session.publisher.stream():
            print(_render(view), flush=True)
            shown += 1
            if args.count and shown >= args.count:
                break


def main() -> None:
    parser = argparse.ArgumentParser(description="Live device telemetry in the terminal.")
    parser.add_argument("--count", type=int, default=0, help="Stop after N views (0 = run until Ctrl+C).")
    parser.add_argument("--timeout", type=float, default=None, help="Per-source fetch timeout in seconds.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
