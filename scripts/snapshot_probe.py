#!/usr/bin/env python3
"""Snapshot probe for a running diagnostic backend.

Connects to the backend, optionally starts a scan, and prints every phase
transition and screen as snapshots arrive. Use this to check that the
backend's pull endpoint and push stream agree.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import time

from vyntool import VynClient, VynConfig
from vyntool.models import TransportMode

_LOG = logging.getLogger("snapshot_probe")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch snapshots published by the diagnostic backend.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=30,
        help="Seconds to watch before exiting.",
    )
    parser.add_argument(
        "--scan",
        choices=[mode.value for mode in TransportMode],
        default=None,
        help="Start a scan over this transport after connecting.",
    )
    parser.add_argument(
        "--simulation-source",
        default=None,
        help="Sample-data path for simulation scans.",
    )
    parser.add_argument(
        "--no-push",
        action="store_true",
        help="Only pull once; do not subscribe to the push stream.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Pretty-print every snapshot as JSON.",
    )
    parser.add_argument(
        "--logs",
        action="store_true",
        help="Print the backend log tail before exiting.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    overrides = {"push_enabled": False} if args.no_push else {}
    config = VynConfig.from_env(**overrides)
    started_at = time.monotonic()
    last_version = -1

    def on_change(client: VynClient) -> None:
        nonlocal last_version
        if client.version == last_version:
            return
        last_version = client.version
        elapsed = time.monotonic() - started_at
        print(f"[{elapsed:7.2f}s] v{client.version} phase={client.phase} screen={client.screen.kind}")
        if client.selected_module_id is not None:
            print(f"           selected={client.selected_module_id}")
        if args.json:
            print(json.dumps(client.snapshot.model_dump(mode="json", by_alias=True), indent=2))

    async with VynClient(config) as client:
        client.add_listener(on_change)
        on_change(client)
        status = client.adapter_status
        print(f"Adapter: {status.label} ({status.message or 'no message'})")

        if args.scan is not None:
            client.set_connect_mode(TransportMode(args.scan))
            client.connect(args.simulation_source)

        await asyncio.sleep(max(0, args.duration))

        if args.logs:
            print(await client.read_log_tail())

        views = client.views
        print(
            f"Final: phase={client.phase} modules={len(client.snapshot.modules)} "
            f"codes={views.total_trouble_code_count}"
        )
    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        _LOG.info("Interrupted")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
