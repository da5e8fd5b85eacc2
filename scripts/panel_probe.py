#!/usr/bin/env python3
"""Passive NSPanel probe.

Connects to the broker configured through ``NSPANEL_*`` environment
variables, prints every decoded panel event and, on request, runs a
firmware version check.

Use this to see which events the panel emits and whether the version
sources are reachable.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from dataclasses import dataclass, field

from pynspanel import PanelClient, PanelConfig, PanelError, VersionAcquisitionError
from pynspanel.models.events import FirmwareEvent, PanelEvent


@dataclass
class ProbeStats:
    started_at: float
    total_events: int = 0
    by_kind: dict[str, int] = field(default_factory=dict)

    def on_event(self, event: PanelEvent) -> None:
        self.total_events += 1
        self.by_kind[event.kind.value] = self.by_kind.get(event.kind.value, 0) + 1


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Passive probe printing decoded NSPanel events.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--check-updates",
        action="store_true",
        help="Run a firmware version check after connecting.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Pretty-print events as JSON.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_event(event: PanelEvent, pretty: bool) -> None:
    dumped = event.model_dump(mode="json", exclude_none=True)
    print(f"[probe] {json.dumps(dumped, indent=2 if pretty else None, ensure_ascii=False)}")


def _print_update_result(event: FirmwareEvent) -> None:
    detail = f" ({event.status_msg})" if event.status_msg else ""
    print(f"[probe] update {event.firmware.value}: {event.status}{detail}")


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s    : {runtime:.1f}")
    print(f"[probe]   total_events : {stats.total_events}")
    for kind, count in sorted(stats.by_kind.items()):
        print(f"[probe]   {kind:<12} : {count}")


async def _run(args: argparse.Namespace, config: PanelConfig, stats: ProbeStats) -> None:
    def on_event(event: PanelEvent) -> None:
        stats.on_event(event)
        _print_event(event, args.json)

    async with PanelClient(config, on_event=on_event, on_update_result=_print_update_result) as panel:
        print(f"[probe] Connected to {config.mqtt_host}:{config.mqtt_port} topic={config.topic}")
        if args.check_updates:
            try:
                snapshot = await panel.check_for_updates()
            except VersionAcquisitionError as exc:
                print(f"[probe] Version check failed, missing {exc.flags.missing()}")
            else:
                print(f"[probe] current={snapshot.current.model_dump(exclude_none=True)}")
                print(f"[probe] latest={snapshot.latest.model_dump(exclude_none=True)}")

        while args.duration <= 0 or (time.time() - stats.started_at) < args.duration:
            await asyncio.sleep(1.0)


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = PanelConfig.from_env()
    except PanelError as exc:
        print(f"[probe] Configuration error: {exc}", file=sys.stderr)
        return 2

    stats = ProbeStats(started_at=time.time())
    try:
        asyncio.run(_run(args, config, stats))
    except KeyboardInterrupt:
        pass
    except OSError as exc:  # pragma: no cover - network/system interaction
        print(f"[probe] Connection failed: {exc}", file=sys.stderr)
        return 2

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
